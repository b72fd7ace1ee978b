# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``jpdctl configure-services`` command."""

from __future__ import annotations

import typer

from ...errors import InputError
from ...github import RepositoryDiscovery
from ...logging import info, warn
from ...models import RepositoryRef
from ...reporting import render_summary
from ...workflows import ServiceConfigurator, WorkflowOptions, service_items
from .. import shared
from ..shared import (
    ConfigOption,
    DockerRegistryOption,
    DryRunOption,
    EmojiOption,
    JfrogUrlOption,
    JobsOption,
    KeyAliasOption,
    OrgOption,
    PrivateKeyOption,
    ProjectKeyOption,
    RepoOption,
)


def configure_services(
    org: OrgOption = None,
    repo: RepoOption = None,
    jfrog_url: JfrogUrlOption = None,
    project_key: ProjectKeyOption = None,
    docker_registry: DockerRegistryOption = None,
    key_alias: KeyAliasOption = None,
    private_key: PrivateKeyOption = None,
    jobs: JobsOption = None,
    config: ConfigOption = None,
    dry_run: DryRunOption = False,
    emoji: EmojiOption = True,
) -> None:
    """Configure the service repositories with platform and evidence settings."""

    with shared.cli_errors(use_emoji=emoji):
        private_pem = None
        if private_key is not None:
            if not private_key.is_file():
                raise InputError(f"Private key file not found: {private_key}")
            private_pem = private_key.read_text(encoding="utf-8")
        settings = shared.load_settings(
            config,
            {
                "platform": {"url": jfrog_url},
                "repositories": {"organization": org, "service_repositories": repo or None},
                "distribution": {"project_key": project_key, "docker_registry": docker_registry, "jobs": jobs},
                "keys": {"alias": key_alias, "private_key": private_pem},
            },
        )
        service_items(settings)
        if dry_run:
            info("DRY RUN mode: no changes will be made", use_emoji=emoji)
        store = shared.build_store(use_emoji=emoji)
        candidates = shared.resolve_repositories(
            store,
            settings.repositories.organization,
            settings.repositories.service_repositories,
        )
        repositories = RepositoryDiscovery(store, use_emoji=emoji).discover(candidates)
        dispatch = _dispatch_target(repositories, settings.repositories.dispatch_repository)
        if dispatch is None:
            warn(
                f"Dispatch repository {settings.repositories.dispatch_repository} is not among the targets",
                use_emoji=emoji,
            )
        report = ServiceConfigurator(
            settings,
            store=store,
            repositories=repositories,
            dispatch_repository=dispatch,
            options=WorkflowOptions(dry_run=dry_run, use_emoji=emoji),
        ).run()
    code = render_summary(report.result, title="Service configuration summary", use_emoji=emoji)
    raise typer.Exit(code=code)


def _dispatch_target(repositories: list[RepositoryRef], name: str) -> RepositoryRef | None:
    return next((repo for repo in repositories if name in (repo.name, repo.full_name)), None)


def register(app: typer.Typer) -> None:
    """Attach the configure-services command to ``app``."""

    app.command("configure-services")(configure_services)


__all__ = ["configure_services", "register"]
