"""Tests for the exponential backoff retry handler."""

from __future__ import annotations

import pytest

from app.domain.entities import RetryConfig
from app.infrastructure.notifications import (
    RetryHandler,
    calculate_backoff_delay,
    execute_with_retry,
)

pytestmark = pytest.mark.anyio


def test_backoff_delay_grows_and_is_capped() -> None:
    config = RetryConfig(
        max_retries=5, initial_delay_ms=1000, max_delay_ms=5000, backoff_multiplier=2
    )

    delays = [calculate_backoff_delay(attempt, config) for attempt in range(6)]

    assert delays == [1000, 2000, 4000, 5000, 5000, 5000]


async def test_operation_succeeding_on_third_attempt(sleep_recorder) -> None:
    """Two failures are retried with growing delays before the success."""

    calls = 0

    async def operation() -> str:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise RuntimeError("temporary")
        return "ok"

    config = RetryConfig(
        max_retries=3, initial_delay_ms=1000, max_delay_ms=16000, backoff_multiplier=2
    )
    result = await RetryHandler(sleep=sleep_recorder).execute_with_retry(operation, config)

    assert result.success is True
    assert result.attempt_count == 3
    assert result.result == "ok"
    assert sleep_recorder.delays == [1.0, 2.0]


async def test_exhausted_retries_report_last_error(sleep_recorder) -> None:
    attempts: list[int] = []

    async def operation() -> None:
        attempts.append(len(attempts) + 1)
        raise RuntimeError(f"failure {len(attempts)}")

    config = RetryConfig(
        max_retries=2, initial_delay_ms=100, max_delay_ms=1000, backoff_multiplier=3
    )
    result = await execute_with_retry(operation, config, sleep=sleep_recorder)

    assert result.success is False
    assert result.attempt_count == 3
    assert str(result.error) == "failure 3"
    # No wait after the final attempt.
    assert sleep_recorder.delays == [0.1, 0.3]


async def test_first_attempt_success_does_not_sleep(sleep_recorder) -> None:
    async def operation() -> int:
        return 42

    config = RetryConfig(
        max_retries=3, initial_delay_ms=1000, max_delay_ms=16000, backoff_multiplier=2
    )
    result = await RetryHandler(sleep=sleep_recorder).execute_with_retry(operation, config)

    assert result.success is True
    assert result.attempt_count == 1
    assert sleep_recorder.delays == []


async def test_zero_retries_means_single_attempt(sleep_recorder) -> None:
    async def operation() -> None:
        raise ValueError("nope")

    config = RetryConfig(
        max_retries=0, initial_delay_ms=1000, max_delay_ms=16000, backoff_multiplier=2
    )
    result = await RetryHandler(sleep=sleep_recorder).execute_with_retry(operation, config)

    assert result.success is False
    assert result.attempt_count == 1
    assert sleep_recorder.delays == []
