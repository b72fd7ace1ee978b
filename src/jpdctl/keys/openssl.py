# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""OpenSSL invocations used to generate and inspect PEM key material."""

from __future__ import annotations

from pathlib import Path
from subprocess import CompletedProcess
from typing import Final

from ..errors import KeyMaterialError, PrerequisiteError
from ..process import CommandRunner, run_command

OPENSSL: Final[str] = "openssl"
PRIVATE_KEY_FILENAME: Final[str] = "private.pem"
PUBLIC_KEY_FILENAME: Final[str] = "public.pem"
_OPENSSL_HINT: Final[str] = "Install OpenSSL or provide keys generated elsewhere with --private-key/--public-key."

_GENERATE_COMMANDS: Final[dict[str, tuple[tuple[str, ...], ...]]] = {
    "rsa": (("genrsa", "-out", "{private}", "2048"),),
    "ec": (("ecparam", "-genkey", "-name", "prime256v1", "-noout", "-out", "{private}"),),
    "ed25519": (("genpkey", "-algorithm", "ED25519", "-out", "{private}"),),
}


def _default_runner(args: list[str], **kwargs: object) -> CompletedProcess[str]:
    return run_command(args, check=False, **kwargs)


def normalize_pem(text: str) -> str:
    """Return ``text`` with CRLF line endings folded and surrounding whitespace removed."""

    return text.replace("\r\n", "\n").strip()


class OpenSSL:
    """Run ``openssl`` with PEM payloads passed over stdin."""

    def __init__(self, *, runner: CommandRunner | None = None, timeout: float | None = 60.0) -> None:
        self._runner = runner or _default_runner
        self._timeout = timeout

    def is_private_key(self, pem: str) -> bool:
        return self._run(["pkey", "-noout"], stdin=pem).returncode == 0

    def is_public_key(self, pem: str) -> bool:
        return self._run(["pkey", "-pubin", "-noout"], stdin=pem).returncode == 0

    def derive_public_key(self, private_pem: str) -> str:
        """Return the PEM public key corresponding to ``private_pem``.

        Raises:
            KeyMaterialError: If ``private_pem`` cannot be parsed.
        """

        completed = self._run(["pkey", "-pubout"], stdin=private_pem)
        if completed.returncode != 0:
            raise KeyMaterialError(f"Unable to derive public key: {(completed.stderr or '').strip()}")
        return completed.stdout or ""

    def generate(self, algorithm: str, directory: Path) -> tuple[Path, Path]:
        """Write a fresh ``algorithm`` key pair into ``directory``.

        Returns:
            tuple[Path, Path]: Paths of the private and public PEM files.

        Raises:
            KeyMaterialError: For unsupported algorithms or failed openssl calls.
        """

        commands = _GENERATE_COMMANDS.get(algorithm)
        if commands is None:
            raise KeyMaterialError(f"Unsupported key type: {algorithm}")
        private_path = directory / PRIVATE_KEY_FILENAME
        public_path = directory / PUBLIC_KEY_FILENAME
        for template in commands:
            args = [part.format(private=private_path) for part in template]
            self._check(self._run(args), f"openssl {args[0]}")
        pubout = ["pkey", "-in", str(private_path), "-pubout", "-out", str(public_path)]
        self._check(self._run(pubout), "openssl pkey -pubout")
        return private_path, public_path

    def _run(self, args: list[str], *, stdin: str | None = None) -> CompletedProcess[str]:
        try:
            return self._runner([OPENSSL, *args], input=stdin, timeout=self._timeout)
        except FileNotFoundError as exc:
            raise PrerequisiteError("OpenSSL is required but not installed", hint=_OPENSSL_HINT) from exc

    @staticmethod
    def _check(completed: CompletedProcess[str], label: str) -> None:
        if completed.returncode != 0:
            raise KeyMaterialError(f"{label} failed: {(completed.stderr or '').strip() or completed.returncode}")


__all__ = ["OPENSSL", "OpenSSL", "PRIVATE_KEY_FILENAME", "PUBLIC_KEY_FILENAME", "normalize_pem"]
