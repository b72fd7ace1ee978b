# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Pre-flight checks run against the target platform before any mutation."""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import ACCESS_PING_PATH, ARTIFACTORY_PING_PATH, PLATFORM_URL_PATTERN
from ..errors import InputError, PlatformError
from ..logging import fail, info, ok, warn
from .client import PlatformClient


def validate_platform_url(url: str) -> str:
    """Return ``url`` without trailing slashes after checking its shape.

    Args:
        url: Operator supplied platform URL.

    Returns:
        str: Normalised URL of the form ``https://<host>.jfrog.io``.

    Raises:
        InputError: If the URL does not match the expected host format.
    """

    normalized = (url or "").strip().rstrip("/")
    if not PLATFORM_URL_PATTERN.match(normalized):
        raise InputError(
            f"Invalid host format. Expected: https://host.jfrog.io. Received: {normalized or '<empty>'}",
        )
    return normalized


@dataclass(slots=True)
class HealthReport:
    """Outcome of the platform pre-flight checks."""

    url: str
    reachable: bool = False
    authenticated: bool = False
    services_available: bool = False
    access_available: bool = False

    @property
    def degraded(self) -> bool:
        """``True`` when the run continues without confirmed platform access."""

        return not (self.authenticated and self.services_available)


class PlatformHealthChecker:
    """Run format, reachability, authentication and service checks in order.

    Format and reachability failures are always fatal. Authentication and
    Artifactory service failures are fatal unless ``continue_on_auth_failure``
    is set, in which case the report is marked degraded and the run proceeds.
    """

    def __init__(
        self,
        client: PlatformClient,
        *,
        continue_on_auth_failure: bool = False,
        use_emoji: bool = True,
    ) -> None:
        self._client = client
        self._continue = continue_on_auth_failure
        self._use_emoji = use_emoji

    def run(self) -> HealthReport:
        report = HealthReport(url=self.check_format())
        self.check_reachability()
        report.reachable = True
        report.authenticated = self.check_authentication()
        if report.authenticated:
            report.services_available, report.access_available = self.check_services()
        if report.degraded:
            warn(
                "Continuing in best-effort mode: platform access is not confirmed",
                use_emoji=self._use_emoji,
            )
        return report

    def check_format(self) -> str:
        info("Validating host format...", use_emoji=self._use_emoji)
        url = validate_platform_url(self._client.platform.url)
        ok(f"Host format is valid: {url}", use_emoji=self._use_emoji)
        return url

    def check_reachability(self) -> None:
        info("Testing platform connectivity...", use_emoji=self._use_emoji)
        try:
            response = self._client.probe()
        except PlatformError as exc:
            raise PlatformError(f"Cannot reach JPD platform: {self._client.platform.url} ({exc})") from exc
        if response.status_code >= 400:
            raise PlatformError(
                f"Cannot reach JPD platform: {self._client.platform.url} (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        ok("Platform is reachable", use_emoji=self._use_emoji)

    def check_authentication(self) -> bool:
        info("Testing platform authentication...", use_emoji=self._use_emoji)
        try:
            response = self._client.get(ARTIFACTORY_PING_PATH)
        except PlatformError as exc:
            return self._tolerate(PlatformError(f"Authentication probe failed: {exc}"))
        if response.status_code != 200:
            error = PlatformError(
                f"Authentication failed (HTTP {response.status_code})",
                status_code=response.status_code,
                body=response.preview(),
                hint=(
                    "Reproduce locally: curl -i -s --max-time 10 --header 'Authorization: Bearer ***' "
                    f"'{self._client.platform.endpoint(ARTIFACTORY_PING_PATH)}'"
                ),
            )
            return self._tolerate(error)
        ok("Authentication successful", use_emoji=self._use_emoji)
        return True

    def check_services(self) -> tuple[bool, bool]:
        """Return ``(artifactory_ok, access_ok)``; only Artifactory is required."""

        info("Testing platform services...", use_emoji=self._use_emoji)
        try:
            artifactory = self._client.get(ARTIFACTORY_PING_PATH).ok
        except PlatformError:
            artifactory = False
        if not artifactory:
            self._tolerate(PlatformError("Artifactory service is not available"))
            return False, False
        try:
            access = self._client.get(ACCESS_PING_PATH).ok
        except PlatformError:
            access = False
        if not access:
            warn("Access service is not available (may be expected for some deployments)", use_emoji=self._use_emoji)
        ok("Core services are available", use_emoji=self._use_emoji)
        return True, access

    def _tolerate(self, error: PlatformError) -> bool:
        if not self._continue:
            raise error
        fail(str(error), use_emoji=self._use_emoji)
        if error.body:
            fail(f"Response: {error.body}", use_emoji=self._use_emoji)
        warn(
            "Continuing despite platform failure to update GitHub repository secrets/variables",
            use_emoji=self._use_emoji,
        )
        return False


__all__ = ["HealthReport", "PlatformHealthChecker", "validate_platform_url"]
