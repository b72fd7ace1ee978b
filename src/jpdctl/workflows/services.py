# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configure the service repositories with platform and evidence settings."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..config import Settings
from ..constants import (
    DOCKER_REGISTRY,
    EVIDENCE_KEY_ALIAS,
    EVIDENCE_PRIVATE_KEY,
    GH_REPO_DISPATCH_TOKEN,
    JFROG_URL,
    PROJECT_KEY,
)
from ..errors import InputError, StoreError
from ..github import RepositoryConfigStore
from ..logging import info, ok, section, warn
from ..models import ConfigItem, DistributionResult, RepositoryRef
from ..platform import validate_platform_url
from .common import WorkflowOptions, make_distributor


@dataclass(slots=True)
class ServicesReport:
    result: DistributionResult
    dispatch_token_configured: bool | None = None


def service_items(settings: Settings) -> list[ConfigItem]:
    """Return the service repository items, reporting every missing value at once.

    Raises:
        InputError: If the platform URL, key alias or private key is missing.
    """

    private_key = settings.keys.private_key.get_secret_value() if settings.keys.private_key else ""
    required = (
        ("JFROG_URL", settings.platform.url),
        ("EVIDENCE_KEY_ALIAS", settings.keys.alias),
        ("EVIDENCE_PRIVATE_KEY", private_key.strip()),
    )
    missing = [name for name, value in required if not value]
    if missing:
        raise InputError(f"Missing required environment variables: {', '.join(missing)}")
    url = validate_platform_url(settings.platform.url)
    registry = settings.distribution.docker_registry or url.split("://", 1)[-1]
    return [
        ConfigItem.secret(EVIDENCE_PRIVATE_KEY, private_key),
        ConfigItem.variable(JFROG_URL, url),
        ConfigItem.variable(PROJECT_KEY, settings.distribution.project_key),
        ConfigItem.variable(DOCKER_REGISTRY, registry),
        ConfigItem.variable(EVIDENCE_KEY_ALIAS, settings.keys.alias),
    ]


class ServiceConfigurator:
    """Distribute service settings and the optional repository dispatch token."""

    def __init__(
        self,
        settings: Settings,
        *,
        store: RepositoryConfigStore,
        repositories: Sequence[RepositoryRef],
        dispatch_repository: RepositoryRef | None = None,
        options: WorkflowOptions | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._repositories = list(repositories)
        self._dispatch_repository = dispatch_repository
        self._options = options or WorkflowOptions()

    def run(self) -> ServicesReport:
        items = service_items(self._settings)
        distributor = make_distributor(self._store, self._settings.distribution, self._options)
        result = distributor.distribute(self._repositories, items)
        result = distributor.final_verification_pass(result, items)
        return ServicesReport(result=result, dispatch_token_configured=self._configure_dispatch_token())

    def _configure_dispatch_token(self) -> bool | None:
        use_emoji = self._options.use_emoji
        token = self._settings.distribution.dispatch_token
        if token is None or not token.get_secret_value().strip() or self._dispatch_repository is None:
            info("GH_REPO_DISPATCH_TOKEN not provided; skipping dispatch token", use_emoji=use_emoji)
            return None
        repo = self._dispatch_repository
        section("Repository dispatch token")
        if self._options.dry_run:
            info(f"DRY RUN: would set secret {GH_REPO_DISPATCH_TOKEN} on {repo}", use_emoji=use_emoji)
            return True
        try:
            self._store.set_secret(repo, GH_REPO_DISPATCH_TOKEN, token.get_secret_value())
        except StoreError as exc:
            warn(f"Failed to set {GH_REPO_DISPATCH_TOKEN} on {repo}: {exc}", use_emoji=use_emoji)
            return False
        ok(f"{GH_REPO_DISPATCH_TOKEN} configured on {repo}", use_emoji=use_emoji)
        return True


__all__ = ["ServiceConfigurator", "ServicesReport", "service_items"]
