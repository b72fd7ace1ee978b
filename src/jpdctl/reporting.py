# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-of-run summary of a distribution result."""

from __future__ import annotations

from rich import box
from rich.table import Table
from rich.text import Text

from .console import color_allowed, get_console_manager
from .logging import fail, ok, section
from .models import DistributionResult


def build_summary_table(result: DistributionResult, *, color: bool) -> Table:
    """Create a Rich table listing every repository and its failed items.

    Args:
        result: Aggregated outcome after the final verification pass.
        color: Whether styles should be applied.

    Returns:
        Table: Table with one row per repository in reporting order.
    """

    table = Table(box=box.SIMPLE, pad_edge=False, expand=False)
    table.add_column("Repository", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Failed items")

    def styled(value: str, style: str) -> Text:
        return Text(value, style=style) if color else Text(value)

    for outcome in result.succeeded:
        status = "planned" if outcome.dry_run else "ok"
        table.add_row(outcome.repository.full_name, styled(status, "green"), "")
    for outcome in result.failed:
        details = "; ".join(failure.describe() for failure in outcome.failures)
        table.add_row(outcome.repository.full_name, styled("failed", "red"), details)
    return table


def render_summary(result: DistributionResult, *, title: str = "Summary", use_emoji: bool = True) -> int:
    """Print counts, the per-repository table and the failed repositories.

    Returns:
        int: Process exit code, ``1`` when any repository is still failing.
    """

    color = color_allowed()
    section(title)
    console = get_console_manager().get(color=color, emoji=use_emoji)
    console.print(
        f"Total: {result.total}  Succeeded: {len(result.succeeded)}  Failed: {len(result.failed)}",
    )
    if result.total:
        console.print(build_summary_table(result, color=color))
    if result.failed:
        names = ", ".join(repo.full_name for repo in result.failed_repositories)
        fail(f"Failed repositories: {names}", use_emoji=use_emoji)
        for outcome in result.failed:
            fail(f"{outcome.repository}: {', '.join(outcome.failed_items)}", use_emoji=use_emoji)
    else:
        ok(f"All {result.total} repositories configured", use_emoji=use_emoji)
    return result.exit_code()


__all__ = ["build_summary_table", "render_summary"]
