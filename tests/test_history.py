"""Tests for the notification history ledger."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.application.use_cases.notifications import (
    NOTIFICATION_NOT_FOUND,
    HistoryLedger,
    get_history_record,
    purge_expired_history,
    query_history,
)
from app.domain.entities import HistoryQuery, NotificationHistoryRecord
from app.infrastructure.repositories import NotificationHistoryRepository
from app.utils import to_epoch_seconds

START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class SteppingClock:
    """Clock advancing one minute per call."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


def _entry(**overrides) -> NotificationHistoryRecord:
    values = {
        "notification_id": None,
        "user_id": "user-1",
        "event_type": "test_failure",
        "event_id": "event-1",
        "channel": "email",
        "delivery_method": "direct",
        "delivery_status": "sent",
        "recipient": "dev@example.com",
        "metadata": {"project_id": "project-1", "execution_id": "exec-1"},
    }
    values.update(overrides)
    return NotificationHistoryRecord(**values)


@pytest.fixture
def ledger(session) -> HistoryLedger:
    return HistoryLedger(NotificationHistoryRepository(session), clock=SteppingClock(START))


def test_record_assigns_identity_and_retention(ledger) -> None:
    stored = ledger.record(_entry())

    assert stored.notification_id
    assert stored.sent_at == START
    assert stored.ttl == to_epoch_seconds(START + timedelta(days=90))
    assert stored.metadata == {"project_id": "project-1", "execution_id": "exec-1"}
    assert ledger.get_by_id(stored.notification_id) == stored


def test_query_pages_newest_first(ledger, session) -> None:
    stored = [ledger.record(_entry(event_id=f"event-{index}")) for index in range(5)]

    first = query_history(session, HistoryQuery(user_id="user-1", limit=2))
    second = query_history(
        session, HistoryQuery(user_id="user-1", limit=2, next_token=first.next_token)
    )
    third = query_history(
        session, HistoryQuery(user_id="user-1", limit=2, next_token=second.next_token)
    )

    expected = [record.event_id for record in reversed(stored)]
    assert [r.event_id for r in first.records] == expected[:2]
    assert [r.event_id for r in second.records] == expected[2:4]
    assert [r.event_id for r in third.records] == expected[4:]
    assert first.next_token and second.next_token
    assert third.next_token is None


def test_query_filters(ledger, session) -> None:
    ledger.record(_entry(channel="email"))
    ledger.record(_entry(channel="sms", delivery_status="failed"))
    ledger.record(_entry(event_type="critical_alert", channel="sms"))
    ledger.record(_entry(user_id="user-2"))

    failed = query_history(session, HistoryQuery(delivery_status="failed"))
    sms = query_history(session, HistoryQuery(user_id="user-1", channel="sms"))
    critical = query_history(session, HistoryQuery(event_type="critical_alert"))
    windowed = query_history(
        session,
        HistoryQuery(start_date=START + timedelta(minutes=1), end_date=START + timedelta(minutes=2)),
    )

    assert [r.channel for r in failed.records] == ["sms"]
    assert len(sms.records) == 2
    assert [r.event_type for r in critical.records] == ["critical_alert"]
    assert len(windowed.records) == 2


@pytest.mark.parametrize(
    ("filters", "message"),
    [
        (HistoryQuery(delivery_status="bounced"), "Unknown delivery status"),
        (HistoryQuery(start_date=START, end_date=START - timedelta(days=1)), "start_date"),
        (HistoryQuery(next_token="not-a-token"), "Invalid pagination token"),
    ],
)
def test_query_rejects_invalid_filters(session, filters, message) -> None:
    with pytest.raises(ValueError, match=message):
        query_history(session, filters)


def test_update_status(ledger) -> None:
    stored = ledger.record(_entry())
    delivered_at = START + timedelta(minutes=5)

    updated = ledger.update_status(stored.notification_id, "delivered", delivered_at=delivered_at)

    assert updated.delivery_status == "delivered"
    assert updated.delivered_at == delivered_at
    with pytest.raises(ValueError, match="Unknown delivery status"):
        ledger.update_status(stored.notification_id, "lost")
    with pytest.raises(ValueError, match=NOTIFICATION_NOT_FOUND):
        ledger.update_status("missing", "delivered")


def test_get_history_record_not_found(session) -> None:
    with pytest.raises(ValueError, match=NOTIFICATION_NOT_FOUND):
        get_history_record(session, "missing")


def test_purge_expired_records(session) -> None:
    repository = NotificationHistoryRepository(session)
    short_lived = HistoryLedger(repository, retention_days=1, clock=SteppingClock(START))
    long_lived = HistoryLedger(repository, retention_days=90, clock=SteppingClock(START))
    expired = short_lived.record(_entry(event_id="old"))
    kept = long_lived.record(_entry(event_id="new"))

    removed = purge_expired_history(session, now=START + timedelta(days=2))

    assert removed == 1
    assert repository.get(expired.notification_id) is None
    assert repository.get(kept.notification_id) is not None
