# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the repository configuration distributor."""

from __future__ import annotations

import pytest
from conftest import STALE, FakeStore, repo

from jpdctl.distribution import ConfigurationDistributor
from jpdctl.errors import StoreError
from jpdctl.models import ConfigItem
from jpdctl.reporting import render_summary
from jpdctl.retry import BackoffPolicy

URL_ITEM = ConfigItem.variable("JFROG_URL", "https://x.jfrog.io")


def _names(refs) -> list[str]:
    return [ref.name for ref in refs]


@pytest.mark.parametrize("position", range(5))
def test_failing_repository_is_isolated(position: int, sleeps) -> None:
    repos = [repo(f"r{index}") for index in range(5)]
    broken = repos[position]
    store = FakeStore(reject_writes={broken.full_name})
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)

    result = distributor.distribute(repos, [URL_ITEM])

    assert result.failed_repositories == [broken]
    assert result.succeeded_repositories == [ref for ref in repos if ref != broken]
    assert result.failed[0].failures[0].stage == "write"


def test_concrete_scenario_reports_failed_repository_and_item(sleeps, capsys) -> None:
    a, b, c = repo("A"), repo("B"), repo("C")
    store = FakeStore(reject_writes={c.full_name}, stale_reads={b.full_name: 2})
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)

    result = distributor.distribute([a, b, c], [URL_ITEM])
    result = distributor.final_verification_pass(result, [URL_ITEM])
    capsys.readouterr()
    code = render_summary(result, use_emoji=False)
    output = capsys.readouterr().out

    assert _names(result.succeeded_repositories) == ["A", "B"]
    assert _names(result.failed_repositories) == ["C"]
    assert code == 1
    assert "Failed repositories: org/C" in output
    assert "org/C: JFROG_URL" in output


def test_stale_reads_are_retried_until_consistent(sleeps) -> None:
    store = FakeStore(stale_reads={"org/B": 2})
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)

    outcome = distributor.apply(repo("B"), [URL_ITEM])

    assert outcome.succeeded
    assert store.reads[("org/B", "JFROG_URL")] == 3
    assert sleeps == [1, 2]


def test_mismatch_after_retries_triggers_exactly_one_rewrite(sleeps) -> None:
    store = FakeStore(stale_reads={"org/a": 13})
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)

    outcome = distributor.apply(repo("a"), [URL_ITEM])

    assert outcome.succeeded
    assert store.writes().count(("set_variable", "org/a", "JFROG_URL")) == 2


def test_unconverged_variable_records_verify_failure(fast_policy, sleeps) -> None:
    store = FakeStore(stale_reads={"org/a": 100})
    distributor = ConfigurationDistributor(store, policy=fast_policy, sleep=sleeps, use_emoji=False)

    outcome = distributor.apply(repo("a"), [URL_ITEM])

    assert not outcome.succeeded
    [failure] = outcome.failures
    assert failure.stage == "verify"
    assert STALE in failure.message
    assert store.reads[("org/a", "JFROG_URL")] == 2 * fast_policy.max_attempts


def test_verification_whitespace_is_trimmed(sleeps) -> None:
    store = FakeStore()
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)
    item = ConfigItem.variable("PROJECT_KEY", "  bookverse \n")

    assert distributor.verify_with_retry(repo("a"), item).succeeded is False
    store.variables[("org/a", "PROJECT_KEY")] = "bookverse"
    assert distributor.verify_with_retry(repo("a"), item).succeeded


def test_secrets_are_never_read_back(sleeps) -> None:
    store = FakeStore()
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)
    items = [ConfigItem.secret("JFROG_ADMIN_TOKEN", "token"), URL_ITEM]

    outcome = distributor.apply(repo("a"), items)

    assert outcome.succeeded
    reads = [call for call in store.calls if call[0] == "get_variable"]
    assert {call[2] for call in reads} == {"JFROG_URL"}
    assert store.calls[0] == ("set_secret", "org/a", "JFROG_ADMIN_TOKEN")


def test_secret_write_failure_marks_repository_failed(sleeps) -> None:
    class SecretRejectingStore(FakeStore):
        def set_secret(self, repo_ref, name, value):
            self.reject_writes.add(repo_ref.full_name)
            try:
                super().set_secret(repo_ref, name, value)
            finally:
                self.reject_writes.discard(repo_ref.full_name)

    store = SecretRejectingStore()
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)

    result = distributor.distribute([repo("a")], [ConfigItem.secret("JFROG_ADMIN_TOKEN", "t"), URL_ITEM])

    assert result.failed[0].failed_items == ["JFROG_ADMIN_TOKEN"]
    assert store.variables[("org/a", "JFROG_URL")] == "https://x.jfrog.io"


def test_final_pass_promotes_repository_once_store_converges(sleeps) -> None:
    late = repo("late")
    store = FakeStore(stale_reads={late.full_name: 30})
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)

    result = distributor.distribute([repo("ok"), late], [URL_ITEM])
    assert result.failed_repositories == [late]

    result = distributor.final_verification_pass(result, [URL_ITEM])

    assert result.failed == []
    assert _names(result.succeeded_repositories) == ["ok", "late"]
    assert result.exit_code() == 0


def test_final_pass_verifies_before_rewriting(sleeps) -> None:
    late = repo("late")
    store = FakeStore(stale_reads={late.full_name: 24})
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)
    result = distributor.distribute([late], [URL_ITEM])
    writes_after_main_pass = len(store.writes())

    distributor.final_verification_pass(result, [URL_ITEM])

    assert len(store.writes()) == writes_after_main_pass


class FlakySecretStore(FakeStore):
    """Reject the first ``failures`` secret writes, then accept them."""

    def __init__(self, *args, failures: int, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.failures = failures

    def set_secret(self, repo_ref, name, value):
        if self.failures > 0:
            self.failures -= 1
            self.calls.append(("set_secret", repo_ref.full_name, name))
            raise StoreError("HTTP 502: secret write failed", repository=repo_ref.full_name, item=name)
        super().set_secret(repo_ref, name, value)


SECRET_ITEM = ConfigItem.secret("JFROG_ADMIN_TOKEN", "t")


def test_final_pass_rewrites_failed_secret_and_promotes(sleeps) -> None:
    store = FlakySecretStore(failures=1)
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)
    result = distributor.distribute([repo("a")], [SECRET_ITEM, URL_ITEM])
    assert result.failed[0].failed_items == ["JFROG_ADMIN_TOKEN"]

    result = distributor.final_verification_pass(result, [SECRET_ITEM, URL_ITEM])

    assert _names(result.succeeded_repositories) == ["a"]
    assert store.secrets[("org/a", "JFROG_ADMIN_TOKEN")] == "t"
    writes = store.writes()
    assert writes.count(("set_secret", "org/a", "JFROG_ADMIN_TOKEN")) == 2
    assert writes.count(("set_variable", "org/a", "JFROG_URL")) == 1


def test_final_pass_keeps_repository_failed_while_secret_is_rejected(sleeps) -> None:
    store = FlakySecretStore(failures=10)
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)
    result = distributor.distribute([repo("a"), repo("b")], [SECRET_ITEM])

    result = distributor.final_verification_pass(result, [SECRET_ITEM])

    assert _names(result.failed_repositories) == ["a", "b"]
    assert result.failed[0].failures[0].stage == "write"
    assert result.exit_code() == 1


def test_final_pass_leaves_written_secrets_alone(sleeps) -> None:
    late = repo("late")
    store = FakeStore(stale_reads={late.full_name: 30})
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)
    result = distributor.distribute([late], [SECRET_ITEM, URL_ITEM])

    distributor.final_verification_pass(result, [SECRET_ITEM, URL_ITEM])

    assert store.writes().count(("set_secret", "org/late", "JFROG_ADMIN_TOKEN")) == 1


def test_rerun_against_converged_store_is_stable(sleeps) -> None:
    store = FakeStore()
    distributor = ConfigurationDistributor(store, sleep=sleeps, use_emoji=False)
    repos = [repo("a"), repo("b")]

    first = distributor.distribute(repos, [URL_ITEM])
    second = distributor.distribute(repos, [URL_ITEM])

    assert first.succeeded_repositories == second.succeeded_repositories == repos
    assert first.failed == second.failed == []
    assert sleeps == []


def test_parallel_main_pass_keeps_input_order(sleeps) -> None:
    repos = [repo(f"r{index}") for index in range(6)]
    store = FakeStore(reject_writes={"org/r2"})
    distributor = ConfigurationDistributor(store, sleep=sleeps, jobs=3, use_emoji=False)

    result = distributor.distribute(repos, [URL_ITEM])

    assert _names(result.succeeded_repositories) == ["r0", "r1", "r3", "r4", "r5"]
    assert _names(result.failed_repositories) == ["r2"]


def test_dry_run_performs_no_writes(sleeps) -> None:
    store = FakeStore(reject_writes={"org/a"})
    distributor = ConfigurationDistributor(store, sleep=sleeps, dry_run=True, use_emoji=False)

    result = distributor.distribute([repo("a")], [ConfigItem.secret("JFROG_ADMIN_TOKEN", "t"), URL_ITEM])
    result = distributor.final_verification_pass(result, [URL_ITEM])

    assert store.calls == []
    assert result.succeeded[0].dry_run
    assert result.exit_code() == 0


def test_jobs_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ConfigurationDistributor(FakeStore(), jobs=0, policy=BackoffPolicy())
