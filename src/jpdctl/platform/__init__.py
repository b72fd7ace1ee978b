# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""JFrog Platform client, health checks and trusted-key publishing."""

from __future__ import annotations

from .client import ApiResponse, PlatformClient
from .health import HealthReport, PlatformHealthChecker, validate_platform_url
from .trusted_keys import PublishAction, PublishResult, TrustedKeyPublisher

__all__ = [
    "ApiResponse",
    "HealthReport",
    "PlatformClient",
    "PlatformHealthChecker",
    "PublishAction",
    "PublishResult",
    "TrustedKeyPublisher",
    "validate_platform_url",
]
