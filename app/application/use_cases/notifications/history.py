"""History ledger: the audit trail of every delivery attempt."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.domain.entities import (
    DELIVERY_STATUSES,
    HistoryPage,
    HistoryQuery,
    NotificationHistoryRecord,
)
from app.infrastructure.repositories import NotificationHistoryRepository
from app.utils import now_utc, to_epoch_seconds

DEFAULT_RETENTION_DAYS = 90
NOTIFICATION_NOT_FOUND = "Notification not found"


class HistoryLedger:
    """Record delivery attempts and answer history queries.

    Records receive a fresh identifier, a ``sent_at`` timestamp and a ``ttl``
    (epoch seconds) after which the store may discard them.
    """

    def __init__(
        self,
        repository: NotificationHistoryRepository,
        *,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        clock=now_utc,
        logger: logging.Logger | None = None,
    ) -> None:
        self._repository = repository
        self._retention = timedelta(days=retention_days)
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    def record(self, entry: NotificationHistoryRecord) -> NotificationHistoryRecord:
        sent_at = self._clock()
        stored = self._repository.create(
            replace(
                entry,
                notification_id=str(uuid.uuid4()),
                sent_at=sent_at,
                ttl=to_epoch_seconds(sent_at + self._retention),
            )
        )
        self._logger.info(
            "Recorded %s notification %s on %s for event %s",
            stored.delivery_status,
            stored.notification_id,
            stored.channel,
            stored.event_id,
        )
        return stored

    def update_status(
        self,
        notification_id: str,
        status: str,
        *,
        delivered_at: datetime | None = None,
    ) -> NotificationHistoryRecord:
        if status not in DELIVERY_STATUSES:
            raise ValueError(f"Unknown delivery status '{status}'")
        updated = self._repository.update_status(
            notification_id, status, delivered_at=delivered_at
        )
        if updated is None:
            raise ValueError(NOTIFICATION_NOT_FOUND)
        return updated

    def query(self, filters: HistoryQuery) -> HistoryPage:
        return self._repository.query(filters)

    def get_by_id(self, notification_id: str) -> NotificationHistoryRecord | None:
        return self._repository.get(notification_id)

    def purge_expired(self, *, now: datetime | None = None) -> int:
        removed = self._repository.purge_expired(now=now or self._clock())
        self._logger.info("Purged %s expired notification history record(s)", removed)
        return removed


def query_history(session: Session, filters: HistoryQuery) -> HistoryPage:
    """Return a page of history records matching ``filters``."""

    for name in ("event_type", "channel", "delivery_status"):
        if getattr(filters, name) == "":
            filters = replace(filters, **{name: None})
    if filters.delivery_status is not None and filters.delivery_status not in DELIVERY_STATUSES:
        raise ValueError(f"Unknown delivery status '{filters.delivery_status}'")
    if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
        raise ValueError("start_date must be before end_date")
    return HistoryLedger(NotificationHistoryRepository(session)).query(filters)


def get_history_record(session: Session, notification_id: str) -> NotificationHistoryRecord:
    record = HistoryLedger(NotificationHistoryRepository(session)).get_by_id(notification_id)
    if record is None:
        raise ValueError(NOTIFICATION_NOT_FOUND)
    return record


def purge_expired_history(session: Session, *, now: datetime | None = None) -> int:
    return HistoryLedger(NotificationHistoryRepository(session)).purge_expired(now=now)


__all__ = [
    "DEFAULT_RETENTION_DAYS",
    "NOTIFICATION_NOT_FOUND",
    "HistoryLedger",
    "get_history_record",
    "purge_expired_history",
    "query_history",
]
