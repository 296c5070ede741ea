"""Domain entities for the notification delivery audit trail."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

DELIVERY_STATUS_PENDING = "pending"
DELIVERY_STATUS_SENT = "sent"
DELIVERY_STATUS_DELIVERED = "delivered"
DELIVERY_STATUS_FAILED = "failed"
DELIVERY_STATUS_SUPPRESSED = "suppressed"

DELIVERY_STATUSES = (
    DELIVERY_STATUS_PENDING,
    DELIVERY_STATUS_SENT,
    DELIVERY_STATUS_DELIVERED,
    DELIVERY_STATUS_FAILED,
    DELIVERY_STATUS_SUPPRESSED,
)

DELIVERY_METHOD_DIRECT = "direct"
DELIVERY_METHOD_RELAY = "relay"
DELIVERY_METHOD_FALLBACK = "fallback"

DELIVERY_METHODS = (
    DELIVERY_METHOD_DIRECT,
    DELIVERY_METHOD_RELAY,
    DELIVERY_METHOD_FALLBACK,
)


@dataclass
class NotificationHistoryRecord:
    """One delivery attempt for an (event, channel) pair."""

    notification_id: str | None
    user_id: str
    event_type: str
    event_id: str
    channel: str
    delivery_method: str
    delivery_status: str
    recipient: str
    retry_count: int = 0
    metadata: dict[str, str | None] = field(default_factory=dict)
    sent_at: datetime | None = None
    ttl: int | None = None
    delivered_at: datetime | None = None
    error_message: str | None = None
    message_id: str | None = None


@dataclass
class HistoryQuery:
    """Filters accepted by the history ledger query."""

    user_id: str | None = None
    event_type: str | None = None
    channel: str | None = None
    delivery_status: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int = 50
    next_token: str | None = None


@dataclass
class HistoryPage:
    records: list[NotificationHistoryRecord]
    next_token: str | None = None


__all__ = [
    "DELIVERY_STATUS_PENDING",
    "DELIVERY_STATUS_SENT",
    "DELIVERY_STATUS_DELIVERED",
    "DELIVERY_STATUS_FAILED",
    "DELIVERY_STATUS_SUPPRESSED",
    "DELIVERY_STATUSES",
    "DELIVERY_METHOD_DIRECT",
    "DELIVERY_METHOD_RELAY",
    "DELIVERY_METHOD_FALLBACK",
    "DELIVERY_METHODS",
    "HistoryPage",
    "HistoryQuery",
    "NotificationHistoryRecord",
]
