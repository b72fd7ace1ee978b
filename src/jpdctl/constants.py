# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants used across jpdctl modules."""

from __future__ import annotations

import re
from typing import Final

PLATFORM_URL_PATTERN: Final[re.Pattern[str]] = re.compile(r"^https://[a-zA-Z0-9.-]+\.jfrog\.io$")

ARTIFACTORY_PING_PATH: Final[str] = "/artifactory/api/system/ping"
ACCESS_PING_PATH: Final[str] = "/access/api/v1/system/ping"
TRUSTED_KEYS_PATH: Final[str] = "/artifactory/api/security/keys/trusted"

DEFAULT_PROJECT_KEY: Final[str] = "bookverse"
DEFAULT_KEY_ALIAS: Final[str] = "bookverse-signing-key"
DEFAULT_KEY_ALGORITHM: Final[str] = "rsa"
SUPPORTED_KEY_ALGORITHMS: Final[tuple[str, ...]] = ("rsa", "ec", "ed25519")

DEFAULT_REPOSITORIES: Final[tuple[str, ...]] = (
    "bookverse-inventory",
    "bookverse-recommendations",
    "bookverse-checkout",
    "bookverse-platform",
    "bookverse-web",
    "bookverse-helm",
    "bookverse-demo-assets",
    "bookverse-demo-init",
)

SERVICE_REPOSITORIES: Final[tuple[str, ...]] = (
    "bookverse-inventory",
    "bookverse-recommendations",
    "bookverse-checkout",
    "bookverse-platform",
    "bookverse-web",
    "bookverse-helm",
)

DISPATCH_REPOSITORY: Final[str] = "bookverse-platform"

# Repository configuration item names.
JFROG_URL: Final[str] = "JFROG_URL"
DOCKER_REGISTRY: Final[str] = "DOCKER_REGISTRY"
PROJECT_KEY: Final[str] = "PROJECT_KEY"
JFROG_ADMIN_TOKEN: Final[str] = "JFROG_ADMIN_TOKEN"
EVIDENCE_PRIVATE_KEY: Final[str] = "EVIDENCE_PRIVATE_KEY"
EVIDENCE_PUBLIC_KEY: Final[str] = "EVIDENCE_PUBLIC_KEY"
EVIDENCE_KEY_ALIAS: Final[str] = "EVIDENCE_KEY_ALIAS"
GH_REPO_DISPATCH_TOKEN: Final[str] = "GH_REPO_DISPATCH_TOKEN"

MANAGED_VARIABLES: Final[tuple[str, ...]] = (
    JFROG_URL,
    DOCKER_REGISTRY,
    PROJECT_KEY,
    EVIDENCE_KEY_ALIAS,
    EVIDENCE_PUBLIC_KEY,
)
MANAGED_SECRETS: Final[tuple[str, ...]] = (
    JFROG_ADMIN_TOKEN,
    EVIDENCE_PRIVATE_KEY,
    GH_REPO_DISPATCH_TOKEN,
)

CLEANUP_CONFIRMATION: Final[str] = "CLEAN"
PROJECT_CONFIG_FILENAME: Final[str] = ".jpdctl.toml"

__all__ = [
    "ACCESS_PING_PATH",
    "ARTIFACTORY_PING_PATH",
    "CLEANUP_CONFIRMATION",
    "DEFAULT_KEY_ALGORITHM",
    "DEFAULT_KEY_ALIAS",
    "DEFAULT_PROJECT_KEY",
    "DEFAULT_REPOSITORIES",
    "DISPATCH_REPOSITORY",
    "DOCKER_REGISTRY",
    "EVIDENCE_KEY_ALIAS",
    "EVIDENCE_PRIVATE_KEY",
    "EVIDENCE_PUBLIC_KEY",
    "GH_REPO_DISPATCH_TOKEN",
    "JFROG_ADMIN_TOKEN",
    "JFROG_URL",
    "MANAGED_SECRETS",
    "MANAGED_VARIABLES",
    "PLATFORM_URL_PATTERN",
    "PROJECT_CONFIG_FILENAME",
    "PROJECT_KEY",
    "SERVICE_REPOSITORIES",
    "SUPPORTED_KEY_ALGORITHMS",
    "TRUSTED_KEYS_PATH",
]
