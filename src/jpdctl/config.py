# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models describing a jpdctl run."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from .constants import (
    DEFAULT_KEY_ALIAS,
    DEFAULT_PROJECT_KEY,
    DEFAULT_REPOSITORIES,
    DISPATCH_REPOSITORY,
    SERVICE_REPOSITORIES,
)
from .errors import InputError
from .models import KeyAlgorithm, RepositoryRef, TargetPlatform
from .retry import BackoffPolicy


class PlatformSettings(BaseModel):
    """Target platform endpoint, credentials and health-check behaviour."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    url: str = ""
    admin_token: SecretStr = SecretStr("")
    continue_on_auth_failure: bool = False
    request_timeout: float = Field(default=10.0, gt=0)
    key_verify_delay: float = Field(default=2.0, ge=0)
    key_retry_delay: float = Field(default=1.0, ge=0)

    @field_validator("url", mode="before")
    @classmethod
    def _normalise_url(cls, value: object) -> str:
        return str(value or "").strip().rstrip("/")

    def target(self) -> TargetPlatform:
        """Return the immutable platform description for this run.

        Raises:
            InputError: If the URL or the admin token is missing.
        """

        required = (("JFROG_URL", self.url), ("JFROG_ADMIN_TOKEN", self.admin_token.get_secret_value()))
        missing = [name for name, value in required if not value]
        if missing:
            raise InputError(
                f"Missing required values: {', '.join(missing)}",
                hint="Pass --jfrog-url/--admin-token or export the environment variables.",
            )
        return TargetPlatform(url=self.url, admin_token=self.admin_token)


class RepositorySettings(BaseModel):
    """Organisation and candidate repository lists."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    organization: str | None = None
    repositories: list[str] = Field(default_factory=lambda: list(DEFAULT_REPOSITORIES))
    service_repositories: list[str] = Field(default_factory=lambda: list(SERVICE_REPOSITORIES))
    dispatch_repository: str = DISPATCH_REPOSITORY

    @staticmethod
    def refs(names: list[str], organization: str) -> list[RepositoryRef]:
        """Resolve ``names`` against ``organization``, preserving order and dropping duplicates."""

        try:
            refs = [RepositoryRef.parse(name, default_owner=organization) for name in names if name.strip()]
        except ValueError as exc:
            raise InputError(str(exc)) from exc
        return list(dict.fromkeys(refs))


class DistributionSettings(BaseModel):
    """Values distributed to repositories and the verification schedule."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    project_key: str = DEFAULT_PROJECT_KEY
    docker_registry: str | None = None
    dispatch_token: SecretStr | None = None
    jobs: int = Field(default=1, ge=1, le=32)
    settle_delay: float = Field(default=2.0, ge=0)
    retry: BackoffPolicy = Field(default_factory=BackoffPolicy)


class KeySettings(BaseModel):
    """Evidence signing key alias, algorithm and optional existing material."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    alias: str = DEFAULT_KEY_ALIAS
    algorithm: KeyAlgorithm = "rsa"
    private_key: SecretStr | None = None
    public_key: str | None = None
    private_key_file: Path | None = None
    public_key_file: Path | None = None

    @field_validator("algorithm", mode="before")
    @classmethod
    def _lower_algorithm(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def has_material(self) -> bool:
        """``True`` when both halves were supplied in memory."""

        return bool(self.private_key and self.private_key.get_secret_value().strip() and (self.public_key or "").strip())


class Settings(BaseModel):
    """Root configuration object assembled by :class:`jpdctl.config_loader.ConfigLoader`."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    platform: PlatformSettings = Field(default_factory=PlatformSettings)
    repositories: RepositorySettings = Field(default_factory=RepositorySettings)
    distribution: DistributionSettings = Field(default_factory=DistributionSettings)
    keys: KeySettings = Field(default_factory=KeySettings)


__all__ = [
    "DistributionSettings",
    "KeySettings",
    "PlatformSettings",
    "RepositorySettings",
    "Settings",
]
