# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typed HTTP client for the JFrog Platform endpoints used by jpdctl."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Final

import requests
from pydantic import ValidationError

from ..constants import TRUSTED_KEYS_PATH
from ..errors import PlatformError
from ..models import TargetPlatform, TrustedKeyList

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final[float] = 10.0
_BODY_PREVIEW: Final[int] = 500


@dataclass(slots=True, frozen=True)
class ApiResponse:
    """Status code and body of a completed platform request."""

    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def preview(self) -> str:
        text = self.body.strip()
        return text if len(text) <= _BODY_PREVIEW else f"{text[:_BODY_PREVIEW]}..."


class PlatformClient:
    """Thin ``requests`` wrapper bound to one :class:`TargetPlatform`."""

    def __init__(
        self,
        platform: TargetPlatform,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.platform = platform
        self._session = session or requests.Session()
        self._timeout = timeout

    def probe(self) -> ApiResponse:
        """Issue an unauthenticated GET against the platform base URL."""

        return self._request("GET", self.platform.url, authenticated=False)

    def get(self, path: str) -> ApiResponse:
        return self._request("GET", self.platform.endpoint(path))

    def list_trusted_keys(self) -> TrustedKeyList:
        """Return the trusted keys registered on the platform.

        Raises:
            PlatformError: When the request fails or the payload is malformed.
        """

        response = self.get(TRUSTED_KEYS_PATH)
        if response.status_code != 200:
            raise PlatformError(
                f"Failed to retrieve trusted keys list (HTTP {response.status_code})",
                status_code=response.status_code,
                body=response.preview(),
            )
        try:
            return TrustedKeyList.model_validate_json(response.body or "{}")
        except ValidationError as exc:
            raise PlatformError("Trusted keys payload could not be parsed", body=response.preview()) from exc

    def create_trusted_key(self, alias: str, public_key: str) -> ApiResponse:
        return self._request(
            "POST",
            self.platform.endpoint(TRUSTED_KEYS_PATH),
            json={"alias": alias, "public_key": public_key},
        )

    def delete_trusted_key(self, kid: str) -> ApiResponse:
        return self._request("DELETE", self.platform.endpoint(f"{TRUSTED_KEYS_PATH}/{kid}"))

    def close(self) -> None:
        self._session.close()

    def _request(
        self,
        method: str,
        url: str,
        *,
        authenticated: bool = True,
        json: Any | None = None,
    ) -> ApiResponse:
        headers = self.platform.auth_headers() if authenticated else {}
        LOGGER.debug("http method=%s url=%s auth=%s", method, url, "bearer" if authenticated else "none")
        try:
            response = self._session.request(method, url, headers=headers, json=json, timeout=self._timeout)
        except requests.Timeout as exc:
            raise PlatformError(f"{method} {url} timed out after {self._timeout:.0f}s") from exc
        except requests.RequestException as exc:
            raise PlatformError(f"{method} {url} failed: {exc}") from exc
        LOGGER.debug("http method=%s url=%s status=%s", method, url, response.status_code)
        return ApiResponse(status_code=response.status_code, body=response.text or "")


__all__ = ["ApiResponse", "DEFAULT_TIMEOUT", "PlatformClient"]
