# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Fan configuration items out to repositories and confirm they landed."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from .errors import StoreError
from .github.store import RepositoryConfigStore
from .logging import fail, info, ok, section, warn
from .models import ConfigItem, DistributionResult, RepositoryOutcome, RepositoryRef
from .retry import BackoffPolicy, RetryOutcome, Sleeper, retry_until

LOGGER = logging.getLogger(__name__)


def _matches(expected: str) -> Callable[[str | None], bool]:
    target = expected.strip()

    def accept(observed: str | None) -> bool:
        return observed is not None and observed.strip() == target

    return accept


class ConfigurationDistributor:
    """Write secrets and variables to every repository and verify the variables.

    Each repository is attempted exactly once per pass; item failures are
    recorded on the repository outcome and never abort the batch. Secrets are
    write-only, so their write result is the only evidence they were applied.

    Args:
        store: Repository configuration backend.
        policy: Backoff schedule used by verify-with-retry.
        sleep: Blocking wait, injectable for tests.
        settle_delay: Wait before re-verifying each repository in the final pass.
        dry_run: Log intended writes instead of performing them.
        jobs: Number of repositories processed concurrently in the main pass.
        use_emoji: Whether status lines include emoji.
    """

    def __init__(
        self,
        store: RepositoryConfigStore,
        *,
        policy: BackoffPolicy | None = None,
        sleep: Sleeper = time.sleep,
        settle_delay: float = 2.0,
        dry_run: bool = False,
        jobs: int = 1,
        use_emoji: bool = True,
    ) -> None:
        if jobs < 1:
            raise ValueError("jobs must be at least 1")
        self._store = store
        self._policy = policy or BackoffPolicy()
        self._sleep = sleep
        self._settle_delay = settle_delay
        self._dry_run = dry_run
        self._jobs = jobs
        self._use_emoji = use_emoji

    def distribute(self, repositories: Sequence[RepositoryRef], items: Sequence[ConfigItem]) -> DistributionResult:
        """Run the main pass over ``repositories``.

        Returns:
            DistributionResult: Outcomes registered in input order.
        """

        section(f"Distributing {len(items)} item(s) to {len(repositories)} repositories")
        if self._jobs == 1 or len(repositories) <= 1:
            outcomes = [self.apply(repo, items) for repo in repositories]
        else:
            with ThreadPoolExecutor(max_workers=self._jobs) as executor:
                futures = [executor.submit(self.apply, repo, items) for repo in repositories]
                outcomes = [future.result() for future in futures]
        result = DistributionResult()
        result.extend(outcomes)
        return result

    def apply(self, repo: RepositoryRef, items: Sequence[ConfigItem]) -> RepositoryOutcome:
        """Write and verify ``items`` on a single repository."""

        info(f"Updating {repo}...", use_emoji=self._use_emoji)
        outcome = RepositoryOutcome(repository=repo, dry_run=self._dry_run)
        for item in items:
            if item.is_secret:
                self._write(repo, item, outcome)
        written = [item for item in items if not item.is_secret and self._write(repo, item, outcome)]
        if not self._dry_run:
            for item in written:
                self._verify_item(repo, item, outcome)
        self._report(outcome)
        return outcome

    def verify_with_retry(self, repo: RepositoryRef, item: ConfigItem) -> RetryOutcome[str | None]:
        """Read ``item`` back until it matches, bounded by the backoff policy."""

        return retry_until(
            lambda: self._store.get_variable(repo, item.name),
            _matches(item.value),
            policy=self._policy,
            sleep=self._sleep,
            retry_on=(StoreError,),
            label=f"{repo}:{item.name}",
        )

    def final_verification_pass(
        self,
        result: DistributionResult,
        items: Sequence[ConfigItem],
    ) -> DistributionResult:
        """Re-check repositories still failing after the main pass.

        Variables are verified before any rewrite is attempted. Secrets whose
        write failed are written again since they cannot be read back.
        Repositories that now pass move to the succeeded set.
        """

        if not result.failed or self._dry_run:
            return result
        section("Final verification pass")
        for previous in list(result.failed):
            repo = previous.repository
            info(f"Re-verifying {repo}", use_emoji=self._use_emoji)
            self._sleep(self._settle_delay)
            failed_secrets = {failure.item for failure in previous.failures}
            outcome = RepositoryOutcome(repository=repo)
            for item in items:
                if item.is_secret:
                    if item.name in failed_secrets:
                        self._write(repo, item, outcome)
                else:
                    self._verify_item(repo, item, outcome)
            if outcome.succeeded:
                ok(f"{repo} verified successfully on final pass", use_emoji=self._use_emoji)
                result.promote(outcome)
            else:
                warn(f"{repo} still failing after final pass", use_emoji=self._use_emoji)
                result.replace_failure(outcome)
        return result

    def _write(self, repo: RepositoryRef, item: ConfigItem, outcome: RepositoryOutcome) -> bool:
        kind = item.kind.value
        if self._dry_run:
            info(f"DRY RUN: would set {kind} {item.name} on {repo}", use_emoji=self._use_emoji)
            return True
        try:
            if item.is_secret:
                self._store.set_secret(repo, item.name, item.value)
            else:
                self._store.set_variable(repo, item.name, item.value)
        except StoreError as exc:
            warn(f"Failed to update {item.name} on {repo}: {exc}", use_emoji=self._use_emoji)
            outcome.record(item.name, "write", str(exc))
            return False
        LOGGER.debug("wrote %s %s on %s", kind, item.name, repo)
        return True

    def _verify_item(self, repo: RepositoryRef, item: ConfigItem, outcome: RepositoryOutcome) -> bool:
        check = self.verify_with_retry(repo, item)
        if check.succeeded:
            ok(f"Verified {item.name}={item.value.strip()} on {repo}", use_emoji=self._use_emoji)
            return True
        warn(f"{item.name} verification failed on {repo}, retrying update once...", use_emoji=self._use_emoji)
        try:
            self._store.set_variable(repo, item.name, item.value)
        except StoreError as exc:
            LOGGER.debug("rewrite of %s on %s failed: %s", item.name, repo, exc)
        check = self.verify_with_retry(repo, item)
        if check.succeeded:
            ok(f"{item.name} verified after retry on {repo}", use_emoji=self._use_emoji)
            return True
        if check.error is not None:
            message = f"read failed after {check.attempts} attempts: {check.error}"
        else:
            message = f"expected '{item.value.strip()}', got '{(check.value or '').strip()}'"
        outcome.record(item.name, "verify", message)
        return False

    def _report(self, outcome: RepositoryOutcome) -> None:
        if outcome.succeeded:
            ok(f"{outcome.repository} updated", use_emoji=self._use_emoji)
        else:
            fail(
                f"{outcome.repository} failed: {', '.join(outcome.failed_items)}",
                use_emoji=self._use_emoji,
            )


__all__ = ["ConfigurationDistributor"]
