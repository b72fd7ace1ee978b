# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Layered configuration loading: defaults, TOML files, environment, CLI."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Final, Protocol

from pydantic import ValidationError

from .config import Settings
from .constants import PROJECT_CONFIG_FILENAME
from .errors import ConfigError

PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "jpdctl"

_ENV_VAR_PATTERN = re.compile(r"\$(\w+)|\$\{([^}]+)\}")

# Environment variables mapped onto (section, field). The first variable set wins.
ENV_BINDINGS: Final[tuple[tuple[tuple[str, ...], tuple[str, str]], ...]] = (
    (("NEW_JFROG_URL", "JFROG_URL"), ("platform", "url")),
    (("NEW_JFROG_ADMIN_TOKEN", "JFROG_ADMIN_TOKEN"), ("platform", "admin_token")),
    (("CONTINUE_ON_AUTH_FAILURE",), ("platform", "continue_on_auth_failure")),
    (("PROJECT_KEY",), ("distribution", "project_key")),
    (("DOCKER_REGISTRY",), ("distribution", "docker_registry")),
    (("GH_REPO_DISPATCH_TOKEN",), ("distribution", "dispatch_token")),
    (("EVIDENCE_KEY_ALIAS",), ("keys", "alias")),
    (("EVIDENCE_KEY_TYPE",), ("keys", "algorithm")),
    (("EVIDENCE_PRIVATE_KEY",), ("keys", "private_key")),
    (("EVIDENCE_PUBLIC_KEY",), ("keys", "public_key")),
)


class ConfigSource(Protocol):
    """Provide a configuration fragment."""

    name: str

    def load(self) -> Mapping[str, Any]: ...


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def expand_env(value: Any, env: Mapping[str, str]) -> Any:
    """Expand ``$VAR``/``${VAR}`` references inside strings, lists and tables.

    Unknown variables are left untouched.
    """

    if isinstance(value, str):

        def _replace(match: re.Match[str]) -> str:
            key = match.group(1) or match.group(2)
            return env.get(key, match.group(0))

        return _ENV_VAR_PATTERN.sub(_replace, value)
    if isinstance(value, Mapping):
        return {key: expand_env(item, env) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item, env) for item in value]
    return value


class TomlConfigSource:
    """Load a TOML document; a missing file contributes nothing."""

    def __init__(self, path: Path, *, name: str | None = None, env: Mapping[str, str] | None = None) -> None:
        self._path = path
        self.name = name or str(path)
        self._env = os.environ if env is None else env

    def load(self) -> Mapping[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            with self._path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {self._path}: {exc}") from exc
        return expand_env(self._select(data), self._env)

    def _select(self, data: Mapping[str, Any]) -> Mapping[str, Any]:
        return data


class PyProjectConfigSource(TomlConfigSource):
    """Read ``[tool.jpdctl]`` within ``pyproject.toml``."""

    def _select(self, data: Mapping[str, Any]) -> Mapping[str, Any]:
        tool_section = data.get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        return section if isinstance(section, Mapping) else {}


class EnvironmentConfigSource:
    """Translate well-known environment variables into a configuration fragment."""

    name = "environment"

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env = os.environ if env is None else env

    def load(self) -> Mapping[str, Any]:
        fragment: dict[str, dict[str, Any]] = {}
        for names, (section, field) in ENV_BINDINGS:
            value = next((self._env[name] for name in names if self._env.get(name, "").strip()), None)
            if value is not None:
                fragment.setdefault(section, {})[field] = value.strip() if field != "private_key" else value
        return fragment


class ConfigLoader:
    """Apply configuration sources in order, later sources overriding earlier ones."""

    def __init__(self, *, sources: Sequence[ConfigSource]) -> None:
        if not sources:
            raise ValueError("at least one configuration source is required")
        self._sources = list(sources)

    @classmethod
    def for_root(
        cls,
        project_root: Path,
        *,
        project_config: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ConfigLoader:
        """Build a loader reading pyproject, the project file and the environment.

        Args:
            project_root: Directory searched for ``pyproject.toml`` and ``.jpdctl.toml``.
            project_config: Explicit project configuration file overriding the default.
            env: Environment mapping, defaulting to ``os.environ``.

        Returns:
            ConfigLoader: Loader with default precedence ordering.
        """

        root = project_root.resolve()
        project_file = project_config if project_config is not None else root / PROJECT_CONFIG_FILENAME
        if project_config is not None and not project_config.is_file():
            raise ConfigError(f"Configuration file not found: {project_config}")
        return cls(
            sources=[
                PyProjectConfigSource(root / "pyproject.toml", env=env),
                TomlConfigSource(project_file, env=env),
                EnvironmentConfigSource(env),
            ],
        )

    def load(self, overrides: Mapping[str, Mapping[str, Any]] | None = None) -> Settings:
        """Merge every source plus ``overrides`` and validate the result.

        ``None`` values in ``overrides`` are ignored so unset CLI flags do not
        mask lower layers.

        Raises:
            ConfigError: If the merged document fails validation.
        """

        merged: dict[str, Any] = {}
        for source in self._sources:
            fragment = source.load()
            if not isinstance(fragment, Mapping):
                raise ConfigError(f"Configuration from {source.name} must be a table")
            merged = deep_merge(merged, fragment)
        if overrides:
            cleaned = {
                section: {key: value for key, value in values.items() if value is not None}
                for section, values in overrides.items()
            }
            merged = deep_merge(merged, cleaned)
        try:
            return Settings.model_validate(merged)
        except ValidationError as exc:
            raise ConfigError(f"Configuration invalid: {_summarise(exc)}") from exc


def _summarise(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


__all__ = [
    "ENV_BINDINGS",
    "ConfigLoader",
    "ConfigSource",
    "EnvironmentConfigSource",
    "PyProjectConfigSource",
    "TomlConfigSource",
    "deep_merge",
    "expand_env",
]
