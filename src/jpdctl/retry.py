# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Bounded retry-with-backoff helpers used for read-after-write checks."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], None]


class BackoffPolicy(BaseModel):
    """Capped exponential backoff schedule.

    The first attempt runs immediately; each subsequent attempt waits for the
    next delay in ``initial_delay * multiplier ** n`` clamped to ``max_delay``.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=12, ge=1)
    initial_delay: float = Field(default=1.0, ge=0.0)
    multiplier: float = Field(default=2.0, ge=1.0)
    max_delay: float = Field(default=16.0, ge=0.0)

    @model_validator(mode="after")
    def _check_cap(self) -> BackoffPolicy:
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be greater than or equal to initial_delay")
        return self

    def delays(self) -> Iterator[float]:
        """Yield the wait inserted before attempts ``2..max_attempts``."""

        delay = self.initial_delay
        for _ in range(self.max_attempts - 1):
            yield delay
            delay = min(delay * self.multiplier, self.max_delay)

    def total_delay(self) -> float:
        """Return the worst-case cumulative wait for the policy."""

        return sum(self.delays())


@dataclass(slots=True)
class RetryOutcome(Generic[T]):
    """Result of :func:`retry_until`."""

    succeeded: bool
    attempts: int
    value: T | None = None
    waited: float = 0.0
    error: BaseException | None = None


def retry_until(
    probe: Callable[[], T],
    accept: Callable[[T], bool],
    *,
    policy: BackoffPolicy,
    sleep: Sleeper = time.sleep,
    retry_on: tuple[type[BaseException], ...] = (),
    label: str = "probe",
) -> RetryOutcome[T]:
    """Call ``probe`` until ``accept`` approves its value or attempts run out.

    Args:
        probe: Zero-argument callable producing the observed value.
        accept: Predicate deciding whether the observed value is final.
        policy: Backoff schedule bounding attempts and waits.
        sleep: Blocking wait function, injectable for tests.
        retry_on: Exception types treated as a failed attempt rather than fatal.
        label: Name used in debug logging.

    Returns:
        RetryOutcome[T]: Success flag, attempt count, last value and total wait.
    """

    delays = policy.delays()
    outcome: RetryOutcome[T] = RetryOutcome(succeeded=False, attempts=0)
    while True:
        outcome.attempts += 1
        try:
            value = probe()
        except retry_on as exc:
            outcome.error = exc
            LOGGER.debug("retry label=%s attempt=%s error=%s", label, outcome.attempts, exc)
        else:
            outcome.value = value
            outcome.error = None
            if accept(value):
                outcome.succeeded = True
                return outcome
            LOGGER.debug("retry label=%s attempt=%s rejected", label, outcome.attempts)
        delay = next(delays, None)
        if delay is None:
            return outcome
        sleep(delay)
        outcome.waited += delay


__all__ = ["BackoffPolicy", "RetryOutcome", "Sleeper", "retry_until"]
