# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""GitHub repository configuration store and discovery helpers."""

from __future__ import annotations

from .discovery import RepositoryDiscovery
from .store import GhCliStore, RepositoryConfigStore, ensure_gh_ready, resolve_organization

__all__ = [
    "GhCliStore",
    "RepositoryConfigStore",
    "RepositoryDiscovery",
    "ensure_gh_ready",
    "resolve_organization",
]
