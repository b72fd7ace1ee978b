# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Remove every jpdctl-managed secret and variable from the repositories."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from ..constants import MANAGED_SECRETS, MANAGED_VARIABLES
from ..errors import StoreError
from ..github import RepositoryConfigStore
from ..logging import fail, info, ok, section
from ..models import RepositoryRef


@dataclass(slots=True)
class CleanupResult:
    """Counts of removed items plus repositories where a delete failed."""

    variables_removed: int = 0
    secrets_removed: int = 0
    failures: dict[str, list[str]] = field(default_factory=dict)

    def exit_code(self) -> int:
        return 1 if self.failures else 0


class ConfigCleaner:
    """Delete managed items; items that are already absent are not errors."""

    def __init__(
        self,
        store: RepositoryConfigStore,
        *,
        variables: Sequence[str] = MANAGED_VARIABLES,
        secrets: Sequence[str] = MANAGED_SECRETS,
        dry_run: bool = False,
        use_emoji: bool = True,
    ) -> None:
        self._store = store
        self._variables = tuple(variables)
        self._secrets = tuple(secrets)
        self._dry_run = dry_run
        self._use_emoji = use_emoji

    def run(self, repositories: Sequence[RepositoryRef]) -> CleanupResult:
        result = CleanupResult()
        for repo in repositories:
            section(f"Cleaning {repo}")
            for name in self._variables:
                if self._delete(repo, "variable", name, result):
                    result.variables_removed += 1
            for name in self._secrets:
                if self._delete(repo, "secret", name, result):
                    result.secrets_removed += 1
        return result

    def _delete(self, repo: RepositoryRef, kind: str, name: str, result: CleanupResult) -> bool:
        if self._dry_run:
            info(f"DRY RUN: would delete {kind} {name} from {repo}", use_emoji=self._use_emoji)
            return False
        delete = self._store.delete_secret if kind == "secret" else self._store.delete_variable
        try:
            removed = delete(repo, name)
        except StoreError as exc:
            fail(f"Failed to delete {kind} {name} from {repo}: {exc}", use_emoji=self._use_emoji)
            result.failures.setdefault(repo.full_name, []).append(name)
            return False
        if removed:
            ok(f"Deleted {kind} {name}", use_emoji=self._use_emoji)
        return removed


__all__ = ["CleanupResult", "ConfigCleaner"]
