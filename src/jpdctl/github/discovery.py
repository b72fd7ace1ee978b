# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filter candidate repositories down to those that exist."""

from __future__ import annotations

from collections.abc import Iterable

from ..errors import InputError
from ..logging import info, warn
from ..models import RepositoryRef
from .store import RepositoryConfigStore


class RepositoryDiscovery:
    """Probe candidate repositories and keep the accessible ones."""

    def __init__(self, store: RepositoryConfigStore, *, use_emoji: bool = True) -> None:
        self._store = store
        self._use_emoji = use_emoji

    def discover(self, candidates: Iterable[RepositoryRef]) -> list[RepositoryRef]:
        """Return the candidates that exist, preserving input order.

        Raises:
            InputError: If none of the candidates exist.
        """

        info("Discovering existing repositories...", use_emoji=self._use_emoji)
        found: list[RepositoryRef] = []
        for repo in dict.fromkeys(candidates):
            if self._store.repo_exists(repo):
                found.append(repo)
            else:
                warn(f"Repository {repo} not found - skipping", use_emoji=self._use_emoji)
        if not found:
            raise InputError("No repositories found", hint="Check --org and the configured repository list.")
        info(f"Found {len(found)} repositories", use_emoji=self._use_emoji)
        return found


__all__ = ["RepositoryDiscovery"]
