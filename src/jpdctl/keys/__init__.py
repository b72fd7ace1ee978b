# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Evidence signing key generation and validation."""

from __future__ import annotations

from .openssl import OpenSSL, normalize_pem
from .provider import KeyMaterialProvider
from .sources import (
    ExternalGeneratorKeySource,
    FallbackKeySource,
    KeyFiles,
    KeySource,
    LocalCryptoKeySource,
    build_key_source,
    locate_key_files,
)

__all__ = [
    "ExternalGeneratorKeySource",
    "FallbackKeySource",
    "KeyFiles",
    "KeyMaterialProvider",
    "KeySource",
    "LocalCryptoKeySource",
    "OpenSSL",
    "build_key_source",
    "locate_key_files",
    "normalize_pem",
]
