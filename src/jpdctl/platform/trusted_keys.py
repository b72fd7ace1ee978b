# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Ensure an alias maps to a given public key in the platform trusted-key store."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Final

from ..errors import SilentFailureError, TrustedKeyError
from ..logging import alert, info, ok, warn
from ..retry import Sleeper
from .client import ApiResponse, PlatformClient

LOGGER = logging.getLogger(__name__)

CREATED_CODES: Final[frozenset[int]] = frozenset({200, 201})
DELETED_CODES: Final[frozenset[int]] = frozenset({200, 204})
CONFLICT_CODE: Final[int] = 409


class PublishAction(Enum):
    CREATED = "created"
    REPLACED = "replaced"
    SKIPPED = "skipped"


@dataclass(slots=True, frozen=True)
class PublishResult:
    alias: str
    action: PublishAction
    kid: str | None = None


class TrustedKeyPublisher:
    """Upload a public key, replacing an existing record with the same alias.

    A ``409`` conflict triggers exactly one lookup, delete and re-upload. A
    second conflict is fatal. Every reported success is confirmed by listing
    the store after ``verify_delay`` seconds; a missing alias at that point is
    raised as :class:`SilentFailureError`.
    """

    def __init__(
        self,
        client: PlatformClient,
        *,
        verify_delay: float = 2.0,
        retry_delay: float = 1.0,
        sleep: Sleeper = time.sleep,
        dry_run: bool = False,
        use_emoji: bool = True,
    ) -> None:
        self._client = client
        self._verify_delay = verify_delay
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._dry_run = dry_run
        self._use_emoji = use_emoji

    def publish(self, alias: str, public_key: str) -> PublishResult:
        info(f"Uploading public key '{alias}' to {self._client.platform.url}...", use_emoji=self._use_emoji)
        if self._dry_run:
            info(f"DRY RUN: POST trusted key alias={alias}", use_emoji=self._use_emoji)
            return PublishResult(alias=alias, action=PublishAction.SKIPPED)

        response = self._client.create_trusted_key(alias, public_key)
        if response.status_code in CREATED_CODES:
            ok("Public key uploaded to JFrog Platform", use_emoji=self._use_emoji)
            return self._verify(alias, PublishAction.CREATED)
        if response.status_code == CONFLICT_CODE:
            warn(f"Trusted key with alias '{alias}' already exists", use_emoji=self._use_emoji)
            self._delete_existing(alias)
            return self._retry_upload(alias, public_key)
        raise self._upload_error("Failed to upload public key to JFrog Platform", response)

    def _delete_existing(self, alias: str) -> None:
        info(f"Checking for existing trusted key with alias: {alias}", use_emoji=self._use_emoji)
        record = self._client.list_trusted_keys().find(alias)
        if record is None or not record.kid:
            raise TrustedKeyError(
                f"Upload reported a conflict for alias '{alias}' but no key with that alias is listed",
                hint="The trusted-key store is inconsistent; inspect it in the platform UI.",
            )
        info(f"Deleting existing trusted key kid={record.kid}", use_emoji=self._use_emoji)
        response = self._client.delete_trusted_key(record.kid)
        if response.status_code not in DELETED_CODES:
            raise TrustedKeyError(
                f"Failed to delete existing trusted key (HTTP {response.status_code})",
                status_code=response.status_code,
                body=response.preview(),
            )
        ok("Existing trusted key deleted", use_emoji=self._use_emoji)

    def _retry_upload(self, alias: str, public_key: str) -> PublishResult:
        if self._retry_delay > 0:
            self._sleep(self._retry_delay)
        info("Retrying upload after deleting existing key...", use_emoji=self._use_emoji)
        response = self._client.create_trusted_key(alias, public_key)
        if response.status_code in CREATED_CODES:
            ok("Public key uploaded to JFrog Platform (after replacing existing key)", use_emoji=self._use_emoji)
            return self._verify(alias, PublishAction.REPLACED)
        if response.status_code == CONFLICT_CODE:
            raise self._upload_error(f"Alias '{alias}' still conflicts after deleting the existing key", response)
        raise self._upload_error("Failed to upload public key after deletion", response)

    def _verify(self, alias: str, action: PublishAction) -> PublishResult:
        info("Verifying upload was successful...", use_emoji=self._use_emoji)
        if self._verify_delay > 0:
            self._sleep(self._verify_delay)
        record = self._client.list_trusted_keys().find(alias)
        if record is None:
            message = f"VERIFICATION FAILED: key with alias '{alias}' not found after upload"
            alert(message, use_emoji=self._use_emoji)
            alert(
                "This indicates a silent upload failure. Check platform permissions and the API endpoint.",
                use_emoji=self._use_emoji,
            )
            raise SilentFailureError(message)
        ok(f"Upload verified: alias '{alias}' (kid: {record.kid or 'n/a'})", use_emoji=self._use_emoji)
        return PublishResult(alias=alias, action=action, kid=record.kid)

    @staticmethod
    def _upload_error(message: str, response: ApiResponse) -> TrustedKeyError:
        LOGGER.debug("trusted key upload failed status=%s", response.status_code)
        return TrustedKeyError(
            f"{message} (HTTP {response.status_code})",
            status_code=response.status_code,
            body=response.preview(),
        )


__all__ = ["PublishAction", "PublishResult", "TrustedKeyPublisher"]
