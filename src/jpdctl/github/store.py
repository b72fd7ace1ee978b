# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Repository secret/variable store backed by the GitHub CLI."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from subprocess import CompletedProcess
from typing import Final, Protocol, runtime_checkable

from ..errors import InputError, PrerequisiteError, StoreError
from ..models import RepositoryRef
from ..process import CommandRunner, run_command, tool_available

LOGGER = logging.getLogger(__name__)

GH: Final[str] = "gh"
GH_ACCEPT_HEADER: Final[str] = "Accept: application/vnd.github+json"
_NOT_FOUND_MARKERS: Final[tuple[str, ...]] = ("http 404", "not found", "could not find")
_GH_INSTALL_HINT: Final[str] = "Install from https://cli.github.com/ and ensure 'gh' is on PATH."
_GH_LOGIN_HINT: Final[str] = "Run 'gh auth login' or export GH_TOKEN with repo, actions and admin:repo_hook scopes."


@runtime_checkable
class RepositoryConfigStore(Protocol):
    """Key-value view of per-repository secrets and variables."""

    def set_secret(self, repo: RepositoryRef, name: str, value: str) -> None: ...

    def set_variable(self, repo: RepositoryRef, name: str, value: str) -> None: ...

    def get_variable(self, repo: RepositoryRef, name: str) -> str | None: ...

    def delete_variable(self, repo: RepositoryRef, name: str) -> bool: ...

    def delete_secret(self, repo: RepositoryRef, name: str) -> bool: ...

    def repo_exists(self, repo: RepositoryRef) -> bool: ...


def _default_runner(args: list[str], **kwargs: object) -> CompletedProcess[str]:
    return run_command(args, check=False, **kwargs)


def _is_not_found(completed: CompletedProcess[str]) -> bool:
    text = f"{completed.stderr or ''}\n{completed.stdout or ''}".lower()
    return any(marker in text for marker in _NOT_FOUND_MARKERS)


def _detail(completed: CompletedProcess[str]) -> str:
    return (completed.stderr or completed.stdout or "").strip() or f"exit status {completed.returncode}"


class GhCliStore:
    """:class:`RepositoryConfigStore` implementation driving ``gh``.

    Secret values are passed on stdin so they never appear in the process table.
    """

    def __init__(self, *, runner: CommandRunner | None = None, timeout: float | None = 60.0) -> None:
        self._runner = runner or _default_runner
        self._timeout = timeout

    def set_secret(self, repo: RepositoryRef, name: str, value: str) -> None:
        completed = self._gh(["secret", "set", name, "--repo", repo.full_name], stdin=value)
        if completed.returncode != 0:
            raise StoreError(f"failed to set secret {name}: {_detail(completed)}", repository=repo.full_name, item=name)

    def set_variable(self, repo: RepositoryRef, name: str, value: str) -> None:
        completed = self._gh(["variable", "set", name, "--body", value, "--repo", repo.full_name])
        if completed.returncode != 0:
            raise StoreError(
                f"failed to set variable {name}: {_detail(completed)}",
                repository=repo.full_name,
                item=name,
            )

    def get_variable(self, repo: RepositoryRef, name: str) -> str | None:
        """Return the stored value of ``name`` or ``None`` when it does not exist.

        The REST endpoint is queried first; ``gh variable get`` is used as a
        fallback for gh builds where the API call is rejected.

        Raises:
            StoreError: When neither lookup succeeds for reasons other than not-found.
        """

        completed = self._gh(["api", "-H", GH_ACCEPT_HEADER, f"repos/{repo.full_name}/actions/variables/{name}"])
        if completed.returncode == 0:
            try:
                payload = json.loads(completed.stdout or "{}")
            except json.JSONDecodeError as exc:
                raise StoreError(f"unparseable variable payload for {name}", repository=repo.full_name, item=name) from exc
            value = payload.get("value") if isinstance(payload, Mapping) else None
            return None if value is None else str(value)
        if _is_not_found(completed):
            return None

        fallback = self._gh(["variable", "get", name, "--repo", repo.full_name])
        if fallback.returncode == 0:
            return (fallback.stdout or "").rstrip("\n")
        if _is_not_found(fallback):
            return None
        raise StoreError(f"failed to read variable {name}: {_detail(fallback)}", repository=repo.full_name, item=name)

    def delete_variable(self, repo: RepositoryRef, name: str) -> bool:
        return self._delete("variable", repo, name)

    def delete_secret(self, repo: RepositoryRef, name: str) -> bool:
        return self._delete("secret", repo, name)

    def repo_exists(self, repo: RepositoryRef) -> bool:
        completed = self._gh(["repo", "view", repo.full_name, "--json", "name"])
        return completed.returncode == 0

    def auth_ok(self) -> bool:
        return self._gh(["auth", "status"]).returncode == 0

    def current_user(self) -> str | None:
        completed = self._gh(["api", "user", "--jq", ".login"])
        if completed.returncode != 0:
            return None
        return (completed.stdout or "").strip() or None

    def _delete(self, kind: str, repo: RepositoryRef, name: str) -> bool:
        completed = self._gh([kind, "delete", name, "--repo", repo.full_name])
        if completed.returncode == 0:
            return True
        if _is_not_found(completed):
            return False
        raise StoreError(f"failed to delete {kind} {name}: {_detail(completed)}", repository=repo.full_name, item=name)

    def _gh(self, args: list[str], *, stdin: str | None = None) -> CompletedProcess[str]:
        try:
            return self._runner([GH, *args], input=stdin, timeout=self._timeout)
        except FileNotFoundError as exc:
            raise PrerequisiteError("GitHub CLI (gh) is not installed", hint=_GH_INSTALL_HINT) from exc


def ensure_gh_ready(store: GhCliStore) -> str:
    """Confirm ``gh`` is installed and authenticated.

    Args:
        store: CLI-backed store used to probe authentication.

    Returns:
        str: Login of the authenticated user, or ``"unknown"``.

    Raises:
        PrerequisiteError: If ``gh`` is missing or not logged in.
    """

    if not tool_available(GH):
        raise PrerequisiteError("GitHub CLI (gh) is not installed", hint=_GH_INSTALL_HINT)
    if not store.auth_ok():
        raise PrerequisiteError("GitHub CLI is not authenticated", hint=_GH_LOGIN_HINT)
    return store.current_user() or "unknown"


def resolve_organization(
    explicit: str | None,
    *,
    env: Mapping[str, str] | None = None,
    store: GhCliStore | None = None,
) -> str:
    """Return the organisation owning the target repositories.

    Precedence: explicit value, the owner part of ``GITHUB_REPOSITORY``,
    ``GITHUB_ORG``, then the login of the authenticated ``gh`` user.

    Raises:
        InputError: If no organisation can be determined.
    """

    if explicit:
        return explicit.strip()
    environ = os.environ if env is None else env
    if repository := environ.get("GITHUB_REPOSITORY", "").strip():
        return repository.split("/", 1)[0]
    if org := environ.get("GITHUB_ORG", "").strip():
        return org
    if store is not None and (login := store.current_user()):
        LOGGER.debug("organization resolved from gh login=%s", login)
        return login
    raise InputError("GitHub organization is required", hint="Pass --org or set GITHUB_ORG.")


__all__ = [
    "GH",
    "GhCliStore",
    "RepositoryConfigStore",
    "ensure_gh_ready",
    "resolve_organization",
]
