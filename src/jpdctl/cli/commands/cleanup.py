# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``jpdctl cleanup`` command."""

from __future__ import annotations

from typing import Annotated

import typer

from ...constants import CLEANUP_CONFIRMATION, MANAGED_SECRETS, MANAGED_VARIABLES
from ...github import RepositoryDiscovery
from ...logging import fail, info, ok, section, warn
from ...workflows import ConfigCleaner
from .. import shared
from ..shared import ConfigOption, DryRunOption, EmojiOption, OrgOption, RepoOption

YesOption = Annotated[bool, typer.Option("--yes", "-y", help="Skip the interactive confirmation.")]


def cleanup(
    org: OrgOption = None,
    repo: RepoOption = None,
    yes: YesOption = False,
    config: ConfigOption = None,
    dry_run: DryRunOption = False,
    emoji: EmojiOption = True,
) -> None:
    """Delete every managed secret and variable from the repositories."""

    with shared.cli_errors(use_emoji=emoji):
        settings = shared.load_settings(
            config,
            {"repositories": {"organization": org, "repositories": repo or None}},
        )
        store = shared.build_store(use_emoji=emoji)
        candidates = shared.resolve_repositories(
            store,
            settings.repositories.organization,
            settings.repositories.repositories,
        )
        warn(
            f"This removes {len(MANAGED_VARIABLES)} variables and {len(MANAGED_SECRETS)} secrets "
            f"from up to {len(candidates)} repositories",
            use_emoji=emoji,
        )
        if dry_run:
            info("DRY RUN mode: no changes will be made", use_emoji=emoji)
        elif not yes:
            answer = typer.prompt(f"Type '{CLEANUP_CONFIRMATION}' to confirm", default="", show_default=False)
            if answer.strip() != CLEANUP_CONFIRMATION:
                fail("Cleanup cancelled", use_emoji=emoji)
                raise typer.Exit(code=1)
        repositories = RepositoryDiscovery(store, use_emoji=emoji).discover(candidates)
        result = ConfigCleaner(store, dry_run=dry_run, use_emoji=emoji).run(repositories)

    section("Cleanup summary")
    ok(f"Variables removed: {result.variables_removed}", use_emoji=emoji)
    ok(f"Secrets removed: {result.secrets_removed}", use_emoji=emoji)
    for repository, names in result.failures.items():
        fail(f"{repository}: failed to delete {', '.join(names)}", use_emoji=emoji)
    raise typer.Exit(code=result.exit_code())


def register(app: typer.Typer) -> None:
    """Attach the cleanup command to ``app``."""

    app.command("cleanup")(cleanup)


__all__ = ["cleanup", "register"]
