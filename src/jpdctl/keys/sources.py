# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Key pair generators and the explicit fallback strategy between them."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess
from typing import Final, Protocol, runtime_checkable

from ..errors import KeyMaterialError, PrerequisiteError
from ..logging import info, warn
from ..process import CommandRunner, run_command, tool_available
from .openssl import OPENSSL, PRIVATE_KEY_FILENAME, PUBLIC_KEY_FILENAME, OpenSSL

LOGGER = logging.getLogger(__name__)

JF: Final[str] = "jf"
_NO_GENERATOR_HINT: Final[str] = (
    "Install the JFrog CLI (https://jfrog.com/getcli/) or OpenSSL, "
    "or supply an existing pair with --private-key/--public-key."
)

ToolCheck = Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class KeyFiles:
    """Canonical private/public PEM files produced by a :class:`KeySource`."""

    private_path: Path
    public_path: Path
    origin: str


@runtime_checkable
class KeySource(Protocol):
    """Producer of a fresh key pair inside a working directory."""

    name: str

    def available(self) -> bool: ...

    def generate(self, alias: str, algorithm: str, directory: Path) -> KeyFiles: ...


def _default_runner(args: list[str], **kwargs: object) -> CompletedProcess[str]:
    return run_command(args, check=False, **kwargs)


def _first_match(directory: Path, patterns: Sequence[str]) -> Path | None:
    for pattern in patterns:
        matches = sorted(path for path in directory.glob(pattern) if path.is_file())
        if matches:
            return matches[0]
    return None


def locate_key_files(directory: Path, alias: str) -> tuple[Path, Path]:
    """Find generator output in ``directory`` and rename it to canonical names.

    Well-known name pairs are tried first, followed by a loose glob over
    ``*private*``/``*.key`` and ``*public*``/``*.pub`` files.

    Args:
        directory: Directory the generator wrote into.
        alias: Key alias, which some generators use as the file stem.

    Returns:
        tuple[Path, Path]: ``private.pem`` and ``public.pem`` inside ``directory``.

    Raises:
        KeyMaterialError: If no private/public pair can be found.
    """

    pairs = (
        (f"{alias}.key", f"{alias}.pub"),
        (PRIVATE_KEY_FILENAME, PUBLIC_KEY_FILENAME),
        ("private.key", "public.key"),
    )
    found: tuple[Path, Path] | None = None
    for private_name, public_name in pairs:
        private_path, public_path = directory / private_name, directory / public_name
        if private_path.is_file() and public_path.is_file():
            found = (private_path, public_path)
            break
    if found is None:
        private_path = _first_match(directory, ("*private*", "*.key"))
        public_path = _first_match(directory, ("*public*", "*.pub"))
        if private_path is None or public_path is None or private_path == public_path:
            listing = ", ".join(sorted(path.name for path in directory.iterdir())) or "<empty>"
            raise KeyMaterialError(f"Generated key files not found in output directory (found: {listing})")
        found = (private_path, public_path)

    canonical_private = directory / PRIVATE_KEY_FILENAME
    canonical_public = directory / PUBLIC_KEY_FILENAME
    if found[0] != canonical_private:
        found[0].replace(canonical_private)
    if found[1] != canonical_public:
        found[1].replace(canonical_public)
    return canonical_private, canonical_public


class ExternalGeneratorKeySource:
    """Generate keys with ``jf evd generate-key-pair``."""

    name = "jfrog-cli"

    def __init__(
        self,
        *,
        runner: CommandRunner | None = None,
        timeout: float | None = 120.0,
        tool_check: ToolCheck = tool_available,
    ) -> None:
        self._runner = runner or _default_runner
        self._timeout = timeout
        self._tool_check = tool_check

    def available(self) -> bool:
        return self._tool_check(JF)

    def generate(self, alias: str, algorithm: str, directory: Path) -> KeyFiles:
        base = [JF, "evd", "generate-key-pair", "--alias", alias]
        attempts = (
            [*base, "--output-dir", str(directory)],
            [*base, "--key-type", algorithm, "--output-dir", str(directory)],
        )
        errors: list[str] = []
        for args in attempts:
            try:
                completed = self._runner(args, timeout=self._timeout)
            except FileNotFoundError as exc:
                raise KeyMaterialError("JFrog CLI is not installed") from exc
            if completed.returncode == 0:
                private_path, public_path = locate_key_files(directory, alias)
                return KeyFiles(private_path, public_path, origin=self.name)
            errors.append((completed.stderr or completed.stdout or "").strip() or f"exit {completed.returncode}")
            LOGGER.debug("jf key generation attempt failed: %s", errors[-1])
        raise KeyMaterialError(f"JFrog CLI key generation failed: {errors[-1]}")


class LocalCryptoKeySource:
    """Generate keys locally with OpenSSL."""

    name = "openssl"

    def __init__(self, openssl: OpenSSL | None = None, *, tool_check: ToolCheck = tool_available) -> None:
        self._openssl = openssl or OpenSSL()
        self._tool_check = tool_check

    def available(self) -> bool:
        return self._tool_check(OPENSSL)

    def generate(self, alias: str, algorithm: str, directory: Path) -> KeyFiles:
        private_path, public_path = self._openssl.generate(algorithm, directory)
        return KeyFiles(private_path, public_path, origin=self.name)


class FallbackKeySource:
    """Try each source in order until one produces a key pair."""

    def __init__(self, sources: Sequence[KeySource], *, use_emoji: bool = True) -> None:
        if not sources:
            raise ValueError("at least one key source is required")
        self._sources = tuple(sources)
        self._use_emoji = use_emoji

    @property
    def name(self) -> str:
        return "+".join(source.name for source in self._sources)

    def available(self) -> bool:
        return any(source.available() for source in self._sources)

    def generate(self, alias: str, algorithm: str, directory: Path) -> KeyFiles:
        failures: list[str] = []
        for source in self._sources:
            if not source.available():
                LOGGER.debug("key source %s unavailable", source.name)
                continue
            info(f"Generating {algorithm} key pair with {source.name}", use_emoji=self._use_emoji)
            try:
                return source.generate(alias, algorithm, directory)
            except KeyMaterialError as exc:
                failures.append(f"{source.name}: {exc}")
                warn(f"{source.name} key generation failed, trying next generator", use_emoji=self._use_emoji)
        if not failures:
            raise PrerequisiteError("No key generator is available", hint=_NO_GENERATOR_HINT)
        raise KeyMaterialError("All key generators failed: " + "; ".join(failures), hint=_NO_GENERATOR_HINT)


def build_key_source(
    *,
    runner: CommandRunner | None = None,
    tool_check: ToolCheck = tool_available,
    use_emoji: bool = True,
) -> FallbackKeySource:
    """Return the JFrog CLI generator backed by the OpenSSL fallback.

    Raises:
        PrerequisiteError: If neither ``jf`` nor ``openssl`` is installed.
    """

    source = FallbackKeySource(
        [
            ExternalGeneratorKeySource(runner=runner, tool_check=tool_check),
            LocalCryptoKeySource(OpenSSL(runner=runner), tool_check=tool_check),
        ],
        use_emoji=use_emoji,
    )
    if not source.available():
        raise PrerequisiteError("Neither the JFrog CLI nor OpenSSL is installed", hint=_NO_GENERATOR_HINT)
    return source


__all__ = [
    "ExternalGeneratorKeySource",
    "FallbackKeySource",
    "KeyFiles",
    "KeySource",
    "LocalCryptoKeySource",
    "build_key_source",
    "locate_key_files",
]
