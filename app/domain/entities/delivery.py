"""Value objects exchanged between the delivery pipeline components."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int
    initial_delay_ms: int
    max_delay_ms: int
    backoff_multiplier: float


@dataclass
class RetryResult(Generic[T]):
    """Outcome of an operation executed by the retry handler."""

    success: bool
    attempt_count: int
    result: T | None = None
    error: BaseException | None = None


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of a direct channel delivery."""

    success: bool
    status: str
    attempt_count: int = 0
    error: str | None = None
    message_id: str | None = None


@dataclass(frozen=True)
class RelayResult:
    """Result of a single outbound relay request."""

    success: bool
    duration_ms: int
    status_code: int | None = None
    response_body: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class PolicyDecision:
    """Whether an event is sent for a user and on which channels."""

    send: bool
    channels: tuple[str, ...] = ()
    reason: str | None = None


@dataclass(frozen=True)
class ChannelResult:
    """Per-channel outcome reported by the delivery processor."""

    notification_id: str | None
    channel: str
    status: str
    delivery_method: str
    error_message: str | None = None


__all__ = [
    "ChannelResult",
    "DeliveryOutcome",
    "PolicyDecision",
    "RelayResult",
    "RetryConfig",
    "RetryResult",
]
