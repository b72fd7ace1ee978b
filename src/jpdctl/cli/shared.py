# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Option aliases and service factories shared by CLI commands."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any

import typer

from ..config import RepositorySettings, Settings
from ..config_loader import ConfigLoader
from ..constants import SUPPORTED_KEY_ALGORITHMS
from ..errors import JpdError
from ..github import GhCliStore, RepositoryConfigStore, ensure_gh_ready, resolve_organization
from ..keys import KeyMaterialProvider, KeySource, build_key_source
from ..logging import fail, info, ok
from ..models import RepositoryRef, TargetPlatform
from ..platform import PlatformClient

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Project configuration file (default: ./.jpdctl.toml).", show_default=False),
]
OrgOption = Annotated[
    str | None,
    typer.Option("--org", "-o", help="GitHub organization owning the repositories.", show_default=False),
]
RepoOption = Annotated[
    list[str] | None,
    typer.Option("--repo", "-r", help="Target repository (repeatable, 'name' or 'owner/name').", show_default=False),
]
JfrogUrlOption = Annotated[
    str | None,
    typer.Option("--jfrog-url", help="Target JFrog Platform URL (https://<host>.jfrog.io).", show_default=False),
]
AdminTokenOption = Annotated[
    str | None,
    typer.Option("--admin-token", help="Admin access token; prefer the JFROG_ADMIN_TOKEN environment variable.", show_default=False),
]
ProjectKeyOption = Annotated[str | None, typer.Option("--project-key", help="JFrog project key.", show_default=False)]
DockerRegistryOption = Annotated[
    str | None,
    typer.Option("--docker-registry", help="Docker registry host (derived from the URL by default).", show_default=False),
]
KeyAliasOption = Annotated[str | None, typer.Option("--key-alias", help="Trusted key alias.", show_default=False)]
KeyTypeOption = Annotated[
    str | None,
    typer.Option("--key-type", help=f"Key algorithm ({', '.join(SUPPORTED_KEY_ALGORITHMS)}).", show_default=False),
]
PrivateKeyOption = Annotated[
    Path | None,
    typer.Option("--private-key", help="Existing private key PEM file.", show_default=False),
]
PublicKeyOption = Annotated[
    Path | None,
    typer.Option("--public-key", help="Existing public key PEM file.", show_default=False),
]
JobsOption = Annotated[
    int | None,
    typer.Option("--jobs", "-j", min=1, max=32, help="Repositories processed concurrently (default 1).", show_default=False),
]
DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", help="Run validation and read-only checks, log writes without performing them."),
]
EmojiOption = Annotated[bool, typer.Option("--emoji/--no-emoji", help="Toggle emoji output.")]
ContinueOption = Annotated[
    bool,
    typer.Option(
        "--continue-on-auth-failure",
        help="Distribute configuration even when platform authentication fails.",
    ),
]


@contextmanager
def cli_errors(*, use_emoji: bool) -> Iterator[None]:
    """Translate :class:`JpdError` into a printed message and ``typer.Exit``."""

    try:
        yield
    except JpdError as exc:
        fail(str(exc), use_emoji=use_emoji)
        if exc.hint:
            info(exc.hint, use_emoji=use_emoji)
        raise typer.Exit(code=exc.exit_code) from exc


def load_settings(config: Path | None, overrides: Mapping[str, Mapping[str, Any]]) -> Settings:
    loader = ConfigLoader.for_root(Path.cwd(), project_config=config)
    return loader.load(overrides)


def build_store(*, use_emoji: bool) -> RepositoryConfigStore:
    """Return a ``gh`` backed store after confirming the CLI is logged in."""

    store = GhCliStore()
    login = ensure_gh_ready(store)
    ok(f"GitHub CLI authenticated as {login}", use_emoji=use_emoji)
    return store


def build_client(platform: TargetPlatform, settings: Settings) -> PlatformClient:
    return PlatformClient(platform, timeout=settings.platform.request_timeout)


def build_provider(*, use_emoji: bool) -> KeyMaterialProvider:
    return KeyMaterialProvider(use_emoji=use_emoji)


def key_source_factory(*, use_emoji: bool) -> KeySource:
    return build_key_source(use_emoji=use_emoji)


def resolve_repositories(
    store: RepositoryConfigStore,
    organization: str | None,
    names: list[str],
) -> list[RepositoryRef]:
    """Resolve repository names against the organization.

    The owner of ``GITHUB_REPOSITORY`` or ``GITHUB_ORG`` fills in a missing
    organization, falling back to the authenticated ``gh`` user.
    """

    org = resolve_organization(organization, store=store if isinstance(store, GhCliStore) else None)
    return RepositorySettings.refs(names, org)


__all__ = [
    "AdminTokenOption",
    "ConfigOption",
    "ContinueOption",
    "DockerRegistryOption",
    "DryRunOption",
    "EmojiOption",
    "JfrogUrlOption",
    "JobsOption",
    "KeyAliasOption",
    "KeyTypeOption",
    "OrgOption",
    "PrivateKeyOption",
    "ProjectKeyOption",
    "PublicKeyOption",
    "RepoOption",
    "build_client",
    "build_provider",
    "build_store",
    "cli_errors",
    "key_source_factory",
    "load_settings",
    "resolve_repositories",
]
