# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end workflows behind the jpdctl commands."""

from __future__ import annotations

from .cleanup import CleanupResult, ConfigCleaner
from .common import WorkflowOptions
from .evidence import EvidenceKeyUpdater, EvidenceReport
from .services import ServiceConfigurator, ServicesReport, service_items
from .switch import PlatformSwitcher, SetupMode, SwitchReport, detect_setup_mode, platform_items

__all__ = [
    "CleanupResult",
    "ConfigCleaner",
    "EvidenceKeyUpdater",
    "EvidenceReport",
    "PlatformSwitcher",
    "ServiceConfigurator",
    "ServicesReport",
    "SetupMode",
    "SwitchReport",
    "WorkflowOptions",
    "detect_setup_mode",
    "platform_items",
    "service_items",
]
