"""Persistence helpers for the notification history ledger."""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from app.domain.entities import HistoryPage, HistoryQuery, NotificationHistoryRecord
from app.infrastructure.models import NotificationHistoryModel
from app.utils import ensure_utc, now_utc, to_epoch_seconds

MAX_PAGE_SIZE = 100


def encode_cursor(sent_at: datetime, notification_id: str) -> str:
    """Return an opaque continuation token for the given sort key."""

    raw = json.dumps(
        {"sent_at": ensure_utc(sent_at).isoformat(), "id": notification_id},
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(token: str) -> tuple[datetime, str]:
    """Decode a continuation token produced by :func:`encode_cursor`."""

    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
        data = json.loads(raw)
        return ensure_utc(datetime.fromisoformat(data["sent_at"])), str(data["id"])
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as exc:
        raise ValueError("Invalid pagination token") from exc


class NotificationHistoryRepository:
    """Provide persistence operations for :class:`NotificationHistoryRecord`."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, record: NotificationHistoryRecord) -> NotificationHistoryRecord:
        if record.notification_id is None:
            raise ValueError("Notification id is required to store a history record")
        model = NotificationHistoryModel()
        self._apply_entity_to_model(model, record)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def get(self, notification_id: str) -> NotificationHistoryRecord | None:
        model = self.session.get(NotificationHistoryModel, notification_id)
        return self._to_entity(model) if model else None

    def update_status(
        self,
        notification_id: str,
        status: str,
        *,
        delivered_at: datetime | None = None,
    ) -> NotificationHistoryRecord | None:
        model = self.session.get(NotificationHistoryModel, notification_id)
        if model is None:
            return None
        model.delivery_status = status
        if delivered_at is not None:
            model.delivered_at = ensure_utc(delivered_at)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def query(self, filters: HistoryQuery) -> HistoryPage:
        """Return one page of records, newest first."""

        limit = max(1, min(filters.limit or 50, MAX_PAGE_SIZE))
        query = self.session.query(NotificationHistoryModel)
        if filters.user_id is not None:
            query = query.filter(NotificationHistoryModel.user_id == filters.user_id)
        if filters.event_type is not None:
            query = query.filter(NotificationHistoryModel.event_type == filters.event_type)
        if filters.channel is not None:
            query = query.filter(NotificationHistoryModel.channel == filters.channel)
        if filters.delivery_status is not None:
            query = query.filter(
                NotificationHistoryModel.delivery_status == filters.delivery_status
            )
        if filters.start_date is not None:
            query = query.filter(NotificationHistoryModel.sent_at >= ensure_utc(filters.start_date))
        if filters.end_date is not None:
            query = query.filter(NotificationHistoryModel.sent_at <= ensure_utc(filters.end_date))
        if filters.next_token:
            cursor_sent_at, cursor_id = decode_cursor(filters.next_token)
            query = query.filter(
                or_(
                    NotificationHistoryModel.sent_at < cursor_sent_at,
                    and_(
                        NotificationHistoryModel.sent_at == cursor_sent_at,
                        NotificationHistoryModel.notification_id < cursor_id,
                    ),
                )
            )

        models: Sequence[NotificationHistoryModel] = (
            query.order_by(
                NotificationHistoryModel.sent_at.desc(),
                NotificationHistoryModel.notification_id.desc(),
            )
            .limit(limit + 1)
            .all()
        )
        records = [self._to_entity(model) for model in models[:limit]]
        next_token = None
        if len(models) > limit and records:
            last = records[-1]
            next_token = encode_cursor(last.sent_at, last.notification_id)
        return HistoryPage(records=records, next_token=next_token)

    def count_for_user_since(
        self, user_id: str, since: datetime, *, statuses: Sequence[str]
    ) -> int:
        query = (
            self.session.query(func.count(NotificationHistoryModel.notification_id))
            .filter(NotificationHistoryModel.user_id == user_id)
            .filter(NotificationHistoryModel.sent_at >= ensure_utc(since))
        )
        if statuses:
            query = query.filter(NotificationHistoryModel.delivery_status.in_(tuple(statuses)))
        return int(query.scalar() or 0)

    def purge_expired(self, *, now: datetime | None = None) -> int:
        """Delete records whose retention horizon has passed."""

        cutoff = to_epoch_seconds(now or now_utc())
        deleted = (
            self.session.query(NotificationHistoryModel)
            .filter(NotificationHistoryModel.ttl < cutoff)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return int(deleted)

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationHistoryModel, record: NotificationHistoryRecord
    ) -> None:
        model.notification_id = record.notification_id
        model.user_id = record.user_id
        model.event_type = record.event_type
        model.event_id = record.event_id
        model.channel = record.channel
        model.delivery_method = record.delivery_method
        model.delivery_status = record.delivery_status
        model.recipient = record.recipient
        model.message_id = record.message_id
        model.error_message = record.error_message
        model.retry_count = record.retry_count
        model.extra = dict(record.metadata or {})
        model.sent_at = ensure_utc(record.sent_at) or now_utc()
        model.delivered_at = ensure_utc(record.delivered_at)
        model.ttl = record.ttl

    @staticmethod
    def _to_entity(model: NotificationHistoryModel) -> NotificationHistoryRecord:
        return NotificationHistoryRecord(
            notification_id=model.notification_id,
            user_id=model.user_id,
            event_type=model.event_type,
            event_id=model.event_id,
            channel=model.channel,
            delivery_method=model.delivery_method,
            delivery_status=model.delivery_status,
            recipient=model.recipient,
            retry_count=model.retry_count or 0,
            metadata=dict(model.extra or {}),
            sent_at=ensure_utc(model.sent_at),
            ttl=model.ttl,
            delivered_at=ensure_utc(model.delivered_at),
            error_message=model.error_message,
            message_id=model.message_id,
        )


__all__ = ["NotificationHistoryRepository", "decode_cursor", "encode_cursor"]
