"""Exponential backoff executor for fallible async operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import anyio

from app.domain.entities import RetryConfig, RetryResult

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


DEFAULT_DELIVERY_RETRY = RetryConfig(
    max_retries=3,
    initial_delay_ms=1_000,
    max_delay_ms=16_000,
    backoff_multiplier=2.0,
)


def calculate_backoff_delay(attempt: int, config: RetryConfig) -> int:
    """Return the delay in milliseconds to wait after zero-based ``attempt``."""

    delay = config.initial_delay_ms * (config.backoff_multiplier**attempt)
    return int(min(delay, config.max_delay_ms))


class RetryHandler:
    """Run an async operation until it succeeds or the retry budget is spent.

    The handler holds no state between calls. ``sleep`` receives seconds and
    defaults to :func:`anyio.sleep`; tests pass a recorder instead.
    """

    def __init__(
        self,
        *,
        sleep: SleepFunc | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._sleep = sleep or anyio.sleep
        self._logger = logger or logging.getLogger(__name__)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        config: RetryConfig = DEFAULT_DELIVERY_RETRY,
    ) -> RetryResult[T]:
        total_attempts = max(config.max_retries, 0) + 1
        last_error: BaseException | None = None

        for attempt in range(total_attempts):
            try:
                result = await operation()
            except Exception as exc:
                last_error = exc
                if attempt + 1 >= total_attempts:
                    break
                delay_ms = calculate_backoff_delay(attempt, config)
                self._logger.warning(
                    "Attempt %s/%s failed: %s; retrying in %sms",
                    attempt + 1,
                    total_attempts,
                    exc,
                    delay_ms,
                )
                await self._sleep(delay_ms / 1000)
            else:
                return RetryResult(success=True, attempt_count=attempt + 1, result=result)

        self._logger.error("Operation failed after %s attempts: %s", total_attempts, last_error)
        return RetryResult(success=False, attempt_count=total_attempts, error=last_error)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig = DEFAULT_DELIVERY_RETRY,
    *,
    sleep: SleepFunc | None = None,
) -> RetryResult[T]:
    """Convenience wrapper around :meth:`RetryHandler.execute_with_retry`."""

    return await RetryHandler(sleep=sleep).execute_with_retry(operation, config)


__all__ = [
    "DEFAULT_DELIVERY_RETRY",
    "RetryHandler",
    "SleepFunc",
    "calculate_backoff_delay",
    "execute_with_retry",
]
