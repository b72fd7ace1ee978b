# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rotate the evidence signing key across the platform and all repositories."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..config import Settings
from ..errors import InputError
from ..github import RepositoryConfigStore, RepositoryDiscovery
from ..keys import KeyMaterialProvider
from ..logging import section, warn
from ..models import DistributionResult, KeyPair, RepositoryRef
from ..platform import HealthReport, PlatformClient, PlatformHealthChecker, PublishResult
from .common import KeySourceFactory, WorkflowOptions, evidence_items, make_distributor, publish_key, resolve_key_pair


@dataclass(slots=True)
class EvidenceReport:
    keys: KeyPair
    published: PublishResult | None
    result: DistributionResult


class EvidenceKeyUpdater:
    """Generate or load an evidence key pair, publish it and distribute it.

    When ``client`` is ``None`` the platform is left untouched and only the
    repositories are updated.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        store: RepositoryConfigStore,
        client: PlatformClient | None,
        candidates: Sequence[RepositoryRef],
        provider: KeyMaterialProvider,
        source_factory: KeySourceFactory,
        generate: bool = True,
        options: WorkflowOptions | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._client = client
        self._candidates = list(candidates)
        self._provider = provider
        self._source_factory = source_factory
        self._generate = generate
        self._options = options or WorkflowOptions()

    def run(self) -> EvidenceReport:
        use_emoji = self._options.use_emoji
        health: HealthReport | None = None
        if self._client is not None:
            section("Validating JFrog Platform")
            health = PlatformHealthChecker(
                self._client,
                continue_on_auth_failure=self._settings.platform.continue_on_auth_failure,
                use_emoji=use_emoji,
            ).run()

        section("Preparing evidence keys")
        keys = resolve_key_pair(
            self._settings.keys,
            generate=self._generate,
            provider=self._provider,
            source_factory=self._source_factory,
            options=self._options,
        )
        if keys is None:
            raise InputError(
                "No evidence keys supplied",
                hint="Use --generate, or pass --private-key/--public-key, or export EVIDENCE_PRIVATE_KEY/EVIDENCE_PUBLIC_KEY.",
            )

        section("Discovering repositories")
        repositories = RepositoryDiscovery(self._store, use_emoji=use_emoji).discover(self._candidates)

        section("Publishing evidence public key")
        published: PublishResult | None = None
        if health is not None and health.degraded:
            warn("Skipping trusted key upload: platform access is not confirmed", use_emoji=use_emoji)
        else:
            published = publish_key(self._client, keys, self._settings.platform, self._options)

        items = evidence_items(keys)
        distributor = make_distributor(self._store, self._settings.distribution, self._options)
        result = distributor.distribute(repositories, items)
        result = distributor.final_verification_pass(result, items)
        return EvidenceReport(keys=keys, published=published, result=result)


__all__ = ["EvidenceKeyUpdater", "EvidenceReport"]
