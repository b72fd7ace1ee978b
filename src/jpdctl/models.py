# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typed data model shared by the platform, key and distribution layers."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

KeyAlgorithm = Literal["rsa", "ec", "ed25519"]
FailureStage = Literal["write", "verify"]


class TargetPlatform(BaseModel):
    """JFrog Platform deployment targeted by a run."""

    model_config = ConfigDict(frozen=True)

    url: str
    admin_token: SecretStr

    @field_validator("url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: object) -> str:
        return str(value or "").strip().rstrip("/")

    @property
    def docker_registry(self) -> str:
        """Return the registry host derived from the platform URL."""

        for scheme in ("https://", "http://"):
            if self.url.startswith(scheme):
                return self.url[len(scheme) :]
        return self.url

    def endpoint(self, path: str) -> str:
        return f"{self.url}{path}"

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.admin_token.get_secret_value()}"}


class RepositoryRef(BaseModel):
    """Organisation/name pair identifying a GitHub repository."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    name: str = Field(min_length=1)

    @classmethod
    def parse(cls, value: str, *, default_owner: str | None = None) -> RepositoryRef:
        """Build a reference from ``owner/name`` or a bare ``name``.

        Args:
            value: Repository identifier supplied by configuration or the CLI.
            default_owner: Owner applied when ``value`` has no ``owner/`` prefix.

        Returns:
            RepositoryRef: Parsed repository reference.

        Raises:
            ValueError: If no owner can be determined.
        """

        text = value.strip().strip("/")
        if "/" in text:
            owner, name = text.split("/", 1)
            return cls(owner=owner, name=name)
        if not default_owner:
            raise ValueError(f"repository '{value}' has no owner")
        return cls(owner=default_owner, name=text)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


class ItemKind(Enum):
    VARIABLE = "variable"
    SECRET = "secret"


class ConfigItem(BaseModel):
    """Named configuration value pushed to every repository."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    value: str = Field(repr=False)
    kind: ItemKind = ItemKind.VARIABLE

    @classmethod
    def variable(cls, name: str, value: str) -> ConfigItem:
        return cls(name=name, value=value, kind=ItemKind.VARIABLE)

    @classmethod
    def secret(cls, name: str, value: str) -> ConfigItem:
        return cls(name=name, value=value, kind=ItemKind.SECRET)

    @property
    def is_secret(self) -> bool:
        return self.kind is ItemKind.SECRET

    @property
    def display_value(self) -> str:
        """Return a value safe to print; secrets never render their content."""

        return "***" if self.is_secret else self.value


class KeyPair(BaseModel):
    """PEM encoded asymmetric key pair plus its trusted-key alias."""

    model_config = ConfigDict(frozen=True)

    alias: str = Field(min_length=1)
    private_pem: str = Field(repr=False)
    public_pem: str
    algorithm: str = "unknown"
    origin: str = "existing"


class TrustedKeyRecord(BaseModel):
    """Trusted key entry as returned by the Artifactory security API."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    alias: str
    kid: str | None = None
    public_key: str | None = None


class TrustedKeyList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    keys: list[TrustedKeyRecord] = Field(default_factory=list)

    def find(self, alias: str) -> TrustedKeyRecord | None:
        return next((record for record in self.keys if record.alias == alias), None)


class ItemFailure(BaseModel):
    """Single configuration item that could not be applied to a repository."""

    model_config = ConfigDict(frozen=True)

    item: str
    stage: FailureStage
    message: str = ""

    def describe(self) -> str:
        detail = f": {self.message}" if self.message else ""
        return f"{self.item} ({self.stage}){detail}"


class RepositoryOutcome(BaseModel):
    """Per-repository distribution result."""

    model_config = ConfigDict(validate_assignment=True)

    repository: RepositoryRef
    failures: list[ItemFailure] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def failed_items(self) -> list[str]:
        return list(dict.fromkeys(failure.item for failure in self.failures))

    def record(self, item: str, stage: FailureStage, message: str = "") -> None:
        self.failures = [*self.failures, ItemFailure(item=item, stage=stage, message=message)]


class DistributionResult(BaseModel):
    """Disjoint succeeded/failed repository sets for one run.

    Repositories may move from ``failed`` to ``succeeded`` during the final
    verification pass, never the reverse.
    """

    model_config = ConfigDict(validate_assignment=True)

    succeeded: list[RepositoryOutcome] = Field(default_factory=list)
    failed: list[RepositoryOutcome] = Field(default_factory=list)

    def register(self, outcome: RepositoryOutcome) -> None:
        if self._contains(outcome.repository):
            raise ValueError(f"repository {outcome.repository} already registered")
        if outcome.succeeded:
            self.succeeded = [*self.succeeded, outcome]
        else:
            self.failed = [*self.failed, outcome]

    def promote(self, outcome: RepositoryOutcome) -> None:
        """Move a previously failed repository into the succeeded set."""

        remaining = [entry for entry in self.failed if entry.repository != outcome.repository]
        if len(remaining) == len(self.failed):
            raise ValueError(f"repository {outcome.repository} is not in the failed set")
        self.failed = remaining
        self.succeeded = [*self.succeeded, outcome]

    def replace_failure(self, outcome: RepositoryOutcome) -> None:
        """Refresh the diagnostics of a repository that is still failing."""

        self.failed = [outcome if entry.repository == outcome.repository else entry for entry in self.failed]

    def extend(self, outcomes: Iterable[RepositoryOutcome]) -> None:
        for outcome in outcomes:
            self.register(outcome)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def failed_repositories(self) -> list[RepositoryRef]:
        return [entry.repository for entry in self.failed]

    @property
    def succeeded_repositories(self) -> list[RepositoryRef]:
        return [entry.repository for entry in self.succeeded]

    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def _contains(self, repository: RepositoryRef) -> bool:
        return any(entry.repository == repository for entry in (*self.succeeded, *self.failed))


__all__ = [
    "ConfigItem",
    "DistributionResult",
    "FailureStage",
    "ItemFailure",
    "ItemKind",
    "KeyAlgorithm",
    "KeyPair",
    "RepositoryOutcome",
    "RepositoryRef",
    "TargetPlatform",
    "TrustedKeyList",
    "TrustedKeyRecord",
]
