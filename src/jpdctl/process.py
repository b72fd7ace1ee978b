# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution."""

from __future__ import annotations

import logging
import shutil

# Bandit: subprocess usage is intentional, we provide a controlled wrapper around
# external tool execution, normalising arguments and disabling ``shell=True``.
import subprocess  # nosec B404
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from subprocess import CompletedProcess
from typing import Final
from urllib.parse import urlsplit

LOGGER = logging.getLogger(__name__)

TIMEOUT_RETURNCODE: Final[int] = 124
REDACTED: Final[str] = "***"
_SECRET_FLAGS: Final[frozenset[str]] = frozenset({"--body", "--password", "--token"})
_SENSITIVE_MARKERS: Final[tuple[str, ...]] = ("authorization:", "bearer ")

CommandRunner = Callable[..., CompletedProcess[str]]


@dataclass(slots=True, frozen=True)
class CommandOptions:
    """Immutable command execution options."""

    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    check: bool = True
    capture_output: bool = True
    text: bool = True
    timeout: float | None = None
    input: str | None = None

    def with_overrides(self, **overrides: object) -> CommandOptions:
        """Return a new options instance with ``overrides`` applied.

        Args:
            **overrides: Option names mapped to replacement values.

        Returns:
            CommandOptions: Updated options instance with overrides applied.

        Raises:
            TypeError: If ``overrides`` includes an unknown option name.
            ValueError: When a timeout override is negative.
        """

        unknown = sorted(key for key in overrides if key not in self.__dataclass_fields__)
        if unknown:
            raise TypeError(f"Unknown command option(s): {', '.join(unknown)}")
        timeout = overrides.get("timeout", self.timeout)
        if isinstance(timeout, (int, float)) and timeout < 0:
            raise ValueError("timeout override must be non-negative")
        return replace(self, **overrides)  # type: ignore[arg-type]


class SubprocessExecutionError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status while ``check`` is true."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str | None,
        stderr: str | None,
    ) -> None:
        """Initialise the error with captured subprocess metadata.

        Args:
            command: Normalised command sequence that was executed.
            returncode: Exit status reported by the subprocess.
            stdout: Captured standard output stream.
            stderr: Captured standard error stream.
        """
        super().__init__(
            f"Command '{Path(command[0]).name}' exited with status {returncode}. "
            f"stderr: {(stderr or '').strip() or '<none>'}",
        )
        self.command = tuple(redact_command(command))
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def redact_command(command: Sequence[str]) -> list[str]:
    """Return ``command`` with secret-bearing arguments replaced by ``***``.

    Args:
        command: Command and argument sequence about to be logged.

    Returns:
        list[str]: Copy of ``command`` safe to render.
    """

    redacted: list[str] = []
    skip_next = False
    for item in command:
        if skip_next:
            redacted.append(REDACTED)
            skip_next = False
            continue
        lowered = item.lower()
        if lowered in _SECRET_FLAGS:
            redacted.append(item)
            skip_next = True
            continue
        if any(marker in lowered for marker in _SENSITIVE_MARKERS):
            redacted.append(REDACTED)
            continue
        if "://" in item:
            parsed = urlsplit(item)
            if parsed.password:
                redacted.append(item.replace(parsed.password, REDACTED))
                continue
        redacted.append(item)
    return redacted


def _ensure_text(value: str | bytes | None) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return value.decode(errors="ignore")


def _normalize_args(args: Sequence[str]) -> list[str]:
    """Normalise the subprocess argument sequence.

    Args:
        args: Raw command arguments supplied by the caller.

    Returns:
        list[str]: Validated argument list suitable for subprocess execution.

    Raises:
        ValueError: If no arguments are provided.
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
    """

    if not args:
        raise ValueError("subprocess command requires at least one argument")

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    resolved = shutil.which(head)
    if resolved is None:
        raise FileNotFoundError(f"Executable '{head}' was not found on PATH")
    return [resolved, *rest]


def tool_available(name: str) -> bool:
    """Return ``True`` when ``name`` resolves to an executable on ``PATH``."""

    return shutil.which(name) is not None


def run_command(
    args: Sequence[str],
    *,
    options: CommandOptions | None = None,
    **overrides: object,
) -> CompletedProcess[str]:
    """Execute ``args`` after normalising the executable path.

    Args:
        args: Command and argument sequence to execute.
        options: Base options configuring execution semantics.
        **overrides: Keyword overrides applied to a cloned ``options`` instance.

    Returns:
        CompletedProcess: Subprocess execution metadata.

    Raises:
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
        SubprocessExecutionError: When ``check`` is true and the process exits
            with a non-zero status.
    """

    normalized = _normalize_args(args)
    resolved = (options or CommandOptions()).with_overrides(**overrides)
    LOGGER.debug("run cmd=%s", " ".join(redact_command([Path(normalized[0]).name, *normalized[1:]])))

    try:
        completed: CompletedProcess[str] = subprocess.run(  # nosec B603 - argument list, no shell
            normalized,
            cwd=str(resolved.cwd) if resolved.cwd is not None else None,
            env=dict(resolved.env) if resolved.env is not None else None,
            check=False,
            capture_output=resolved.capture_output,
            text=resolved.text,
            timeout=resolved.timeout,
            input=resolved.input,
        )
    except subprocess.TimeoutExpired as exc:
        stderr = _ensure_text(exc.stderr)
        timeout_msg = (
            f"Command timed out after {resolved.timeout:.1f}s" if resolved.timeout is not None else "Command timed out"
        )
        completed = CompletedProcess(
            args=list(normalized),
            returncode=TIMEOUT_RETURNCODE,
            stdout=_ensure_text(exc.stdout) or "",
            stderr=f"{stderr}\n{timeout_msg}" if stderr else timeout_msg,
        )

    if resolved.check and completed.returncode != 0:
        raise SubprocessExecutionError(
            normalized,
            completed.returncode,
            completed.stdout if isinstance(completed.stdout, str) else None,
            completed.stderr if isinstance(completed.stderr, str) else None,
        )

    return completed


__all__ = [
    "CommandOptions",
    "CommandRunner",
    "SubprocessExecutionError",
    "redact_command",
    "run_command",
    "tool_available",
]
