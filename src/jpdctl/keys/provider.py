# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Produce validated evidence signing key pairs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from ..constants import SUPPORTED_KEY_ALGORITHMS
from ..errors import InputError, KeyMaterialError
from ..logging import info, ok
from ..models import KeyPair
from .openssl import OpenSSL, normalize_pem
from .sources import KeySource

LOGGER = logging.getLogger(__name__)

_MISMATCH_HINT: Final[str] = (
    "The public key must be derived from the private key. Regenerate the pair "
    "or run 'openssl pkey -in private.pem -pubout' to recover the public half."
)


class KeyMaterialProvider:
    """Generate or load a key pair and refuse to return one that does not match.

    Args:
        openssl: Helper used to parse keys and derive the public half.
        use_emoji: Whether status lines include emoji.
    """

    def __init__(self, *, openssl: OpenSSL | None = None, use_emoji: bool = True) -> None:
        self._openssl = openssl or OpenSSL()
        self._use_emoji = use_emoji

    def generate(self, alias: str, algorithm: str, source: KeySource, directory: Path) -> KeyPair:
        """Create a fresh pair with ``source`` inside ``directory``.

        Raises:
            InputError: If ``algorithm`` is not supported.
            KeyMaterialError: If generation or validation fails.
        """

        if algorithm not in SUPPORTED_KEY_ALGORITHMS:
            raise InputError(
                f"Unsupported key type: {algorithm}",
                hint=f"Choose one of: {', '.join(SUPPORTED_KEY_ALGORITHMS)}",
            )
        files = source.generate(alias, algorithm, directory)
        pair = KeyPair(
            alias=alias,
            private_pem=files.private_path.read_text(encoding="utf-8"),
            public_pem=files.public_path.read_text(encoding="utf-8"),
            algorithm=algorithm,
            origin=files.origin,
        )
        ok(f"Generated {algorithm} key pair using {files.origin}", use_emoji=self._use_emoji)
        return self.validate(pair)

    def load_files(self, alias: str, private_path: Path, public_path: Path) -> KeyPair:
        """Load an existing PEM pair from disk and validate it."""

        for label, path in (("Private", private_path), ("Public", public_path)):
            if not path.is_file():
                raise InputError(f"{label} key file not found: {path}")
        info(f"Using existing keys from {private_path.parent}", use_emoji=self._use_emoji)
        return self.from_material(
            alias,
            private_path.read_text(encoding="utf-8"),
            public_path.read_text(encoding="utf-8"),
            origin="file",
        )

    def from_material(self, alias: str, private_pem: str, public_pem: str, *, origin: str = "environment") -> KeyPair:
        """Validate in-memory PEM material supplied by the operator."""

        if not private_pem.strip() or not public_pem.strip():
            raise InputError("Both the private and the public key are required")
        return self.validate(KeyPair(alias=alias, private_pem=private_pem, public_pem=public_pem, origin=origin))

    def validate(self, pair: KeyPair) -> KeyPair:
        """Check both keys parse and that the public key matches the private key.

        Returns:
            KeyPair: ``pair`` with PEM text normalised to a single trailing newline.

        Raises:
            KeyMaterialError: On an unparsable key or a mismatched pair.
        """

        if not self._openssl.is_private_key(pair.private_pem):
            raise KeyMaterialError("Invalid private key format")
        if not self._openssl.is_public_key(pair.public_pem):
            raise KeyMaterialError("Invalid public key format")
        derived = normalize_pem(self._openssl.derive_public_key(pair.private_pem))
        supplied = normalize_pem(pair.public_pem)
        if derived != supplied:
            LOGGER.debug("derived public key differs from supplied key for alias %s", pair.alias)
            raise KeyMaterialError("Private and public keys do not match", hint=_MISMATCH_HINT)
        ok("Key pair validated", use_emoji=self._use_emoji)
        return pair.model_copy(
            update={
                "private_pem": normalize_pem(pair.private_pem) + "\n",
                "public_pem": supplied + "\n",
            }
        )


__all__ = ["KeyMaterialProvider"]
