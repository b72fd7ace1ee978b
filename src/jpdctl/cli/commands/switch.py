# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``jpdctl switch-platform`` command."""

from __future__ import annotations

from typing import Annotated

import typer

from ...logging import info
from ...reporting import render_summary
from ...workflows import PlatformSwitcher, WorkflowOptions
from .. import shared
from ..shared import (
    AdminTokenOption,
    ConfigOption,
    ContinueOption,
    DockerRegistryOption,
    DryRunOption,
    EmojiOption,
    JfrogUrlOption,
    JobsOption,
    KeyAliasOption,
    KeyTypeOption,
    OrgOption,
    PrivateKeyOption,
    ProjectKeyOption,
    PublicKeyOption,
    RepoOption,
)

GenerateKeysOption = Annotated[
    bool,
    typer.Option("--generate-evidence-keys", help="Generate a new evidence key pair and publish it to the platform."),
]


def switch_platform(
    jfrog_url: JfrogUrlOption = None,
    admin_token: AdminTokenOption = None,
    org: OrgOption = None,
    repo: RepoOption = None,
    project_key: ProjectKeyOption = None,
    docker_registry: DockerRegistryOption = None,
    generate_evidence_keys: GenerateKeysOption = False,
    key_alias: KeyAliasOption = None,
    key_type: KeyTypeOption = None,
    private_key: PrivateKeyOption = None,
    public_key: PublicKeyOption = None,
    continue_on_auth_failure: ContinueOption = False,
    jobs: JobsOption = None,
    config: ConfigOption = None,
    dry_run: DryRunOption = False,
    emoji: EmojiOption = True,
) -> None:
    """Point every repository at a JFrog Platform and verify the result."""

    with shared.cli_errors(use_emoji=emoji):
        settings = shared.load_settings(
            config,
            {
                "platform": {
                    "url": jfrog_url,
                    "admin_token": admin_token,
                    "continue_on_auth_failure": True if continue_on_auth_failure else None,
                },
                "repositories": {"organization": org, "repositories": repo or None},
                "distribution": {"project_key": project_key, "docker_registry": docker_registry, "jobs": jobs},
                "keys": {
                    "alias": key_alias,
                    "algorithm": key_type,
                    "private_key_file": private_key,
                    "public_key_file": public_key,
                },
            },
        )
        platform = settings.platform.target()
        if dry_run:
            info("DRY RUN mode: no changes will be made", use_emoji=emoji)
        store = shared.build_store(use_emoji=emoji)
        candidates = shared.resolve_repositories(
            store,
            settings.repositories.organization,
            settings.repositories.repositories,
        )
        client = shared.build_client(platform, settings)
        try:
            report = PlatformSwitcher(
                settings,
                store=store,
                client=client,
                candidates=candidates,
                provider=shared.build_provider(use_emoji=emoji),
                source_factory=lambda: shared.key_source_factory(use_emoji=emoji),
                generate_keys=generate_evidence_keys,
                options=WorkflowOptions(dry_run=dry_run, use_emoji=emoji),
            ).run()
        finally:
            client.close()
    code = render_summary(report.result, title="Platform switch summary", use_emoji=emoji)
    raise typer.Exit(code=code)


def register(app: typer.Typer) -> None:
    """Attach the switch-platform command to ``app``."""

    app.command("switch-platform")(switch_platform)


__all__ = ["register", "switch_platform"]
