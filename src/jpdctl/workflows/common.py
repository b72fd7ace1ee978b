# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Pieces shared by the command workflows."""

from __future__ import annotations

import os
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from ..config import DistributionSettings, KeySettings, PlatformSettings
from ..constants import EVIDENCE_KEY_ALIAS, EVIDENCE_PRIVATE_KEY, EVIDENCE_PUBLIC_KEY
from ..distribution import ConfigurationDistributor
from ..errors import InputError
from ..github.store import RepositoryConfigStore
from ..keys import KeyMaterialProvider, KeySource
from ..logging import info, ok
from ..models import ConfigItem, KeyPair
from ..platform import PlatformClient, PublishResult, TrustedKeyPublisher
from ..retry import Sleeper

KeySourceFactory = Callable[[], KeySource]


@dataclass(slots=True, frozen=True)
class WorkflowOptions:
    """Run-wide switches shared by every workflow."""

    dry_run: bool = False
    use_emoji: bool = True
    sleep: Sleeper = field(default=time.sleep)


def evidence_items(keys: KeyPair) -> list[ConfigItem]:
    return [
        ConfigItem.secret(EVIDENCE_PRIVATE_KEY, keys.private_pem),
        ConfigItem.variable(EVIDENCE_PUBLIC_KEY, keys.public_pem),
        ConfigItem.variable(EVIDENCE_KEY_ALIAS, keys.alias),
    ]


def make_distributor(
    store: RepositoryConfigStore,
    settings: DistributionSettings,
    options: WorkflowOptions,
) -> ConfigurationDistributor:
    return ConfigurationDistributor(
        store,
        policy=settings.retry,
        sleep=options.sleep,
        settle_delay=settings.settle_delay,
        dry_run=options.dry_run,
        jobs=settings.jobs,
        use_emoji=options.use_emoji,
    )


def make_publisher(client: PlatformClient, settings: PlatformSettings, options: WorkflowOptions) -> TrustedKeyPublisher:
    return TrustedKeyPublisher(
        client,
        verify_delay=settings.key_verify_delay,
        retry_delay=settings.key_retry_delay,
        sleep=options.sleep,
        dry_run=options.dry_run,
        use_emoji=options.use_emoji,
    )


def dry_run_key_pair(settings: KeySettings) -> KeyPair:
    """Placeholder pair standing in for keys a dry run does not generate."""

    return KeyPair(
        alias=settings.alias,
        private_pem="<generated private key>",
        public_pem="<generated public key>",
        algorithm=settings.algorithm,
        origin="dry-run",
    )


def resolve_key_pair(
    settings: KeySettings,
    *,
    generate: bool,
    provider: KeyMaterialProvider,
    source_factory: KeySourceFactory,
    options: WorkflowOptions,
) -> KeyPair | None:
    """Return validated key material for the run, or ``None`` when none was requested.

    Generation happens inside a temporary directory removed before this
    function returns. Existing keys come from files when paths are configured,
    otherwise from in-memory material.

    Raises:
        InputError: If only one key file is configured.
        KeyMaterialError: If the keys are invalid or do not match.
    """

    if generate:
        if options.dry_run:
            info(
                f"DRY RUN: would generate {settings.algorithm} key pair with alias '{settings.alias}'",
                use_emoji=options.use_emoji,
            )
            return dry_run_key_pair(settings)
        source = source_factory()
        with tempfile.TemporaryDirectory(prefix="jpdctl-keys-") as workdir:
            return provider.generate(settings.alias, settings.algorithm, source, Path(workdir))
    if settings.private_key_file or settings.public_key_file:
        if not (settings.private_key_file and settings.public_key_file):
            raise InputError("Both --private-key and --public-key are required for existing keys")
        return provider.load_files(settings.alias, settings.private_key_file, settings.public_key_file)
    if settings.has_material:
        private_pem = settings.private_key.get_secret_value() if settings.private_key else ""
        return provider.from_material(settings.alias, private_pem, settings.public_key or "")
    return None


def publish_key(
    client: PlatformClient | None,
    keys: KeyPair,
    settings: PlatformSettings,
    options: WorkflowOptions,
) -> PublishResult | None:
    if client is None:
        info("Skipping trusted key upload (platform disabled)", use_emoji=options.use_emoji)
        return None
    return make_publisher(client, settings, options).publish(keys.alias, keys.public_pem)


def save_key_pair(keys: KeyPair, directory: Path, *, use_emoji: bool) -> tuple[Path, Path]:
    """Write ``keys`` to ``directory`` with the private key readable by the owner only."""

    directory.mkdir(parents=True, exist_ok=True)
    private_path = directory / f"{keys.alias}.private.pem"
    public_path = directory / f"{keys.alias}.public.pem"
    fd = os.open(private_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(keys.private_pem)
    public_path.write_text(keys.public_pem, encoding="utf-8")
    ok(f"Saved key pair to {directory}", use_emoji=use_emoji)
    return private_path, public_path


__all__ = [
    "KeySourceFactory",
    "WorkflowOptions",
    "dry_run_key_pair",
    "evidence_items",
    "make_distributor",
    "make_publisher",
    "publish_key",
    "resolve_key_pair",
    "save_key_pair",
]
