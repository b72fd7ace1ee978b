# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the bounded backoff helper."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from jpdctl.errors import StoreError
from jpdctl.retry import BackoffPolicy, retry_until


def test_default_policy_schedule_is_capped_doubling() -> None:
    policy = BackoffPolicy()
    assert list(policy.delays()) == [1, 2, 4, 8, 16, 16, 16, 16, 16, 16, 16]
    assert policy.total_delay() == 127


def test_retry_terminates_when_value_never_converges(sleeps) -> None:
    calls = []

    def probe() -> str:
        calls.append(1)
        return "old"

    outcome = retry_until(probe, lambda value: value == "new", policy=BackoffPolicy(), sleep=sleeps)

    assert not outcome.succeeded
    assert outcome.attempts == 12
    assert len(calls) == 12
    assert sum(sleeps) == outcome.waited <= BackoffPolicy().total_delay()


def test_retry_stops_on_first_accepted_value(sleeps) -> None:
    values = iter(["a", "b", "c", "d"])
    outcome = retry_until(lambda: next(values), lambda value: value == "c", policy=BackoffPolicy(), sleep=sleeps)

    assert outcome.succeeded
    assert outcome.attempts == 3
    assert outcome.value == "c"
    assert sleeps == [1, 2]


def test_listed_exceptions_count_as_failed_attempts(sleeps) -> None:
    attempts = iter([StoreError("boom", repository="o/r"), "ok"])

    def probe() -> str:
        value = next(attempts)
        if isinstance(value, Exception):
            raise value
        return value

    outcome = retry_until(probe, lambda value: value == "ok", policy=BackoffPolicy(), sleep=sleeps, retry_on=(StoreError,))
    assert outcome.succeeded
    assert outcome.attempts == 2
    assert outcome.error is None


def test_unlisted_exceptions_propagate(sleeps) -> None:
    def probe() -> str:
        raise RuntimeError("fatal")

    with pytest.raises(RuntimeError):
        retry_until(probe, bool, policy=BackoffPolicy(), sleep=sleeps)
    assert sleeps == []


def test_policy_rejects_cap_below_initial_delay() -> None:
    with pytest.raises(ValidationError):
        BackoffPolicy(initial_delay=4, max_delay=2)
