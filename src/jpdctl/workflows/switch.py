# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Point every repository at a (new) JFrog Platform deployment."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..config import Settings
from ..constants import DOCKER_REGISTRY, JFROG_ADMIN_TOKEN, JFROG_URL, PROJECT_KEY
from ..errors import StoreError
from ..github import RepositoryConfigStore, RepositoryDiscovery
from ..keys import KeyMaterialProvider
from ..logging import info, ok, section, warn
from ..models import ConfigItem, DistributionResult, KeyPair, RepositoryRef, TargetPlatform
from ..platform import HealthReport, PlatformClient, PlatformHealthChecker, PublishResult
from .common import (
    KeySourceFactory,
    WorkflowOptions,
    evidence_items,
    make_distributor,
    publish_key,
    resolve_key_pair,
)


class SetupMode(Enum):
    INITIAL = "initial"
    SWITCH = "switch"
    REFRESH = "refresh"


@dataclass(slots=True)
class SwitchReport:
    """Everything a platform switch run produced."""

    mode: SetupMode
    previous_url: str | None
    health: HealthReport
    keys: KeyPair | None
    published: PublishResult | None
    result: DistributionResult


def detect_setup_mode(
    store: RepositoryConfigStore,
    probe_repo: RepositoryRef,
    target_url: str,
) -> tuple[SetupMode, str | None]:
    """Classify the run by reading ``JFROG_URL`` from ``probe_repo``.

    An unset value means initial setup; a value equal to ``target_url`` is a
    refresh of the same platform; anything else is a switch.
    """

    try:
        current = store.get_variable(probe_repo, JFROG_URL)
    except StoreError:
        current = None
    current = (current or "").strip().rstrip("/") or None
    if current is None:
        return SetupMode.INITIAL, None
    if current == target_url:
        return SetupMode.REFRESH, current
    return SetupMode.SWITCH, current


def platform_items(
    platform: TargetPlatform,
    *,
    project_key: str,
    docker_registry: str | None = None,
    keys: KeyPair | None = None,
) -> list[ConfigItem]:
    """Return the items written by a platform switch, secrets first."""

    items = [
        ConfigItem.secret(JFROG_ADMIN_TOKEN, platform.admin_token.get_secret_value()),
        ConfigItem.variable(JFROG_URL, platform.url),
        ConfigItem.variable(DOCKER_REGISTRY, docker_registry or platform.docker_registry),
        ConfigItem.variable(PROJECT_KEY, project_key),
    ]
    if keys is not None:
        items.extend(evidence_items(keys))
    return items


class PlatformSwitcher:
    """Validate the target platform and distribute its configuration.

    Args:
        settings: Resolved run configuration.
        store: Repository configuration backend.
        client: HTTP client bound to the target platform.
        candidates: Repositories considered for distribution.
        provider: Validator and loader for evidence key material.
        source_factory: Builds the key generator when keys are generated.
        generate_keys: Generate and publish a fresh evidence key pair.
        options: Dry-run, emoji and sleep settings.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        store: RepositoryConfigStore,
        client: PlatformClient,
        candidates: Sequence[RepositoryRef],
        provider: KeyMaterialProvider,
        source_factory: KeySourceFactory,
        generate_keys: bool = False,
        options: WorkflowOptions | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._client = client
        self._candidates = list(candidates)
        self._provider = provider
        self._source_factory = source_factory
        self._generate_keys = generate_keys
        self._options = options or WorkflowOptions()

    def run(self) -> SwitchReport:
        use_emoji = self._options.use_emoji
        platform = self._client.platform

        section("Validating target platform")
        health = PlatformHealthChecker(
            self._client,
            continue_on_auth_failure=self._settings.platform.continue_on_auth_failure,
            use_emoji=use_emoji,
        ).run()

        keys = resolve_key_pair(
            self._settings.keys,
            generate=self._generate_keys,
            provider=self._provider,
            source_factory=self._source_factory,
            options=self._options,
        )

        section("Discovering repositories")
        repositories = RepositoryDiscovery(self._store, use_emoji=use_emoji).discover(self._candidates)
        mode, previous = detect_setup_mode(self._store, repositories[0], platform.url)
        self._announce(mode, previous, platform.url)

        published: PublishResult | None = None
        if keys is not None:
            section("Publishing evidence public key")
            if health.degraded:
                warn("Skipping trusted key upload: platform access is not confirmed", use_emoji=use_emoji)
            else:
                published = publish_key(self._client, keys, self._settings.platform, self._options)

        items = platform_items(
            platform,
            project_key=self._settings.distribution.project_key,
            docker_registry=self._settings.distribution.docker_registry,
            keys=keys,
        )
        distributor = make_distributor(self._store, self._settings.distribution, self._options)
        result = distributor.distribute(repositories, items)
        result = distributor.final_verification_pass(result, items)
        return SwitchReport(
            mode=mode,
            previous_url=previous,
            health=health,
            keys=keys,
            published=published,
            result=result,
        )

    def _announce(self, mode: SetupMode, previous: str | None, target: str) -> None:
        use_emoji = self._options.use_emoji
        if mode is SetupMode.INITIAL:
            info(f"Initial setup: configuring repositories for {target}", use_emoji=use_emoji)
        elif mode is SetupMode.REFRESH:
            ok(f"Repositories already point at {target}; refreshing configuration", use_emoji=use_emoji)
        else:
            info(f"Platform switch: {previous} -> {target}", use_emoji=use_emoji)


__all__ = ["PlatformSwitcher", "SetupMode", "SwitchReport", "detect_setup_mode", "platform_items"]
