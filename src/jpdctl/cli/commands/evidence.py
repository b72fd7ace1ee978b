# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``jpdctl evidence-keys`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from ...logging import echo, info, ok, section, warn
from ...models import KeyPair
from ...platform import PlatformClient
from ...reporting import render_summary
from ...workflows import EvidenceKeyUpdater, WorkflowOptions
from ...workflows.common import save_key_pair
from .. import shared
from ..shared import (
    AdminTokenOption,
    ConfigOption,
    ContinueOption,
    DryRunOption,
    EmojiOption,
    JfrogUrlOption,
    JobsOption,
    KeyAliasOption,
    KeyTypeOption,
    OrgOption,
    PrivateKeyOption,
    PublicKeyOption,
    RepoOption,
)

GenerateOption = Annotated[
    bool,
    typer.Option("--generate/--existing", help="Generate a new key pair or use existing key material."),
]
NoJfrogOption = Annotated[
    bool,
    typer.Option("--no-jfrog", help="Skip the JFrog Platform upload and only update repositories."),
]
OutputDirOption = Annotated[
    Path | None,
    typer.Option("--output-dir", help="Save a generated key pair to this directory.", show_default=False),
]


def evidence_keys(
    generate: GenerateOption = True,
    private_key: PrivateKeyOption = None,
    public_key: PublicKeyOption = None,
    key_alias: KeyAliasOption = None,
    key_type: KeyTypeOption = None,
    no_jfrog: NoJfrogOption = False,
    jfrog_url: JfrogUrlOption = None,
    admin_token: AdminTokenOption = None,
    continue_on_auth_failure: ContinueOption = False,
    org: OrgOption = None,
    repo: RepoOption = None,
    output_dir: OutputDirOption = None,
    jobs: JobsOption = None,
    config: ConfigOption = None,
    dry_run: DryRunOption = False,
    emoji: EmojiOption = True,
) -> None:
    """Generate or load an evidence key pair and roll it out."""

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
                "distribution": {"jobs": jobs},
                "keys": {
                    "alias": key_alias,
                    "algorithm": key_type,
                    "private_key_file": private_key,
                    "public_key_file": public_key,
                },
            },
        )
        client: PlatformClient | None = None
        if not no_jfrog:
            client = shared.build_client(settings.platform.target(), settings)
        if dry_run:
            info("DRY RUN mode: no changes will be made", use_emoji=emoji)
        store = shared.build_store(use_emoji=emoji)
        candidates = shared.resolve_repositories(
            store,
            settings.repositories.organization,
            settings.repositories.repositories,
        )
        try:
            report = EvidenceKeyUpdater(
                settings,
                store=store,
                client=client,
                candidates=candidates,
                provider=shared.build_provider(use_emoji=emoji),
                source_factory=lambda: shared.key_source_factory(use_emoji=emoji),
                generate=generate,
                options=WorkflowOptions(dry_run=dry_run, use_emoji=emoji),
            ).run()
            if generate and not dry_run:
                _show_generated_keys(report.keys, output_dir, use_emoji=emoji)
        finally:
            if client is not None:
                client.close()
    code = render_summary(report.result, title="Evidence key update summary", use_emoji=emoji)
    raise typer.Exit(code=code)


def _show_generated_keys(keys: KeyPair, output_dir: Path | None, *, use_emoji: bool) -> None:
    section("Generated keys")
    ok(f"Alias: {keys.alias} ({keys.algorithm}, via {keys.origin})", use_emoji=use_emoji)
    echo(keys.public_pem.rstrip("\n"))
    if output_dir is not None:
        save_key_pair(keys, output_dir, use_emoji=use_emoji)
    else:
        warn(
            "The private key is stored only in repository secrets; pass --output-dir to keep a local copy.",
            use_emoji=use_emoji,
        )


def register(app: typer.Typer) -> None:
    """Attach the evidence-keys command to ``app``."""

    app.command("evidence-keys")(evidence_keys)


__all__ = ["evidence_keys", "register"]
