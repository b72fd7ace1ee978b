# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by jpdctl workflows."""

from __future__ import annotations


class JpdError(RuntimeError):
    """Base error carrying the process exit status used by the CLI."""

    def __init__(self, message: str, *, exit_code: int = 1, hint: str | None = None) -> None:
        """Initialise the error with a message, exit code and remediation hint.

        Args:
            message: Human-readable error message shown to the operator.
            exit_code: Exit status associated with the failure.
            hint: Optional remediation guidance rendered after the message.
        """

        super().__init__(message)
        self.exit_code = exit_code
        self.hint = hint


class InputError(JpdError):
    """Raised when operator supplied parameters are missing or malformed."""


class PrerequisiteError(JpdError):
    """Raised when a required external tool or login is unavailable."""


class PlatformError(JpdError):
    """Raised when the target platform is unreachable or rejects a request."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.body = body


class TrustedKeyError(PlatformError):
    """Raised when the trusted-key store cannot be brought to the requested state."""


class SilentFailureError(TrustedKeyError):
    """Raised when an operation reported success but its post-condition does not hold."""


class KeyMaterialError(JpdError):
    """Raised when key generation or key validation fails."""


class StoreError(JpdError):
    """Raised by repository configuration stores for item-level failures."""

    def __init__(self, message: str, *, repository: str, item: str | None = None) -> None:
        super().__init__(message)
        self.repository = repository
        self.item = item


class ConfigError(InputError):
    """Raised when configuration documents cannot be loaded or validated."""


__all__ = [
    "ConfigError",
    "InputError",
    "JpdError",
    "KeyMaterialError",
    "PlatformError",
    "PrerequisiteError",
    "SilentFailureError",
    "StoreError",
    "TrustedKeyError",
]
