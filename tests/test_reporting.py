# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the end-of-run summary."""

from __future__ import annotations

import pytest
from conftest import repo
from rich.console import Console

from jpdctl.models import DistributionResult, RepositoryOutcome
from jpdctl.reporting import build_summary_table, render_summary


def _result() -> DistributionResult:
    result = DistributionResult()
    result.register(RepositoryOutcome(repository=repo("web")))
    broken = RepositoryOutcome(repository=repo("helm"))
    broken.record("JFROG_URL", "verify", "expected 'a', got 'b'")
    broken.record("JFROG_URL", "write", "HTTP 403")
    result.register(broken)
    return result


def test_table_lists_every_repository_with_failed_items() -> None:
    console = Console(width=200, record=True, color_system=None)
    console.print(build_summary_table(_result(), color=False))
    text = console.export_text()

    assert "org/web" in text
    assert "org/helm" in text
    assert "JFROG_URL (verify): expected 'a', got 'b'" in text
    assert "failed" in text


def test_render_summary_names_failed_repositories(capsys) -> None:
    code = render_summary(_result(), title="Run", use_emoji=False)
    out = capsys.readouterr().out

    assert code == 1
    assert "Total: 2  Succeeded: 1  Failed: 1" in out
    assert "Failed repositories: org/helm" in out
    assert "org/helm: JFROG_URL" in out


def test_render_summary_of_clean_run(capsys) -> None:
    result = DistributionResult()
    result.register(RepositoryOutcome(repository=repo("web")))

    assert render_summary(result, use_emoji=False) == 0
    assert "All 1 repositories configured" in capsys.readouterr().out


def test_promotion_moves_repository_out_of_failed_set() -> None:
    result = _result()
    result.promote(RepositoryOutcome(repository=repo("helm")))

    assert result.failed == []
    assert [ref.name for ref in result.succeeded_repositories] == ["web", "helm"]
    with pytest.raises(ValueError):
        result.promote(RepositoryOutcome(repository=repo("helm")))


def test_repository_cannot_be_registered_twice() -> None:
    result = _result()
    with pytest.raises(ValueError):
        result.register(RepositoryOutcome(repository=repo("web")))
