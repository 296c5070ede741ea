"""Tests for the preference evaluator and the preference use cases."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.application.use_cases.notifications.preferences import (
    REASON_DISABLED,
    REASON_NO_CHANNELS,
    REASON_QUIET_HOURS,
    REASON_RATE_LIMITED,
    HistoryFrequencyCounter,
    PreferenceEvaluator,
    get_preferences,
    is_within_window,
    update_preferences,
)
from app.domain.entities import (
    EventPreference,
    FrequencyLimit,
    NotificationHistoryRecord,
    NotificationPreferences,
    QuietHours,
)
from app.infrastructure.repositories import (
    NotificationHistoryRepository,
    NotificationPreferencesRepository,
)
from app.utils import to_epoch_seconds

NOON = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
MIDNIGHT = datetime(2024, 5, 1, 23, 30, tzinfo=timezone.utc)


class StaticRepository:
    def __init__(self, preferences: NotificationPreferences | None) -> None:
        self.preferences = preferences

    def get(self, user_id: str) -> NotificationPreferences | None:
        return self.preferences


class FailingRepository:
    def get(self, user_id: str) -> NotificationPreferences | None:
        raise RuntimeError("store unavailable")


class FixedCounter:
    def __init__(self, count: int) -> None:
        self.count = count
        self.calls: list[tuple[str, datetime]] = []

    def count_since(self, user_id: str, since: datetime) -> int:
        self.calls.append((user_id, since))
        return self.count


def _preferences(**overrides) -> NotificationPreferences:
    values = {
        "user_id": "user-1",
        "events": {
            "test_completion": EventPreference(enabled=False, channels=["email"]),
            "test_failure": EventPreference(enabled=True, channels=["email", "slack"]),
            "critical_alert": EventPreference(enabled=False, channels=["email", "sms"]),
        },
    }
    values.update(overrides)
    return NotificationPreferences(**values)


def _evaluator(preferences, *, now=NOON, counter=None) -> PreferenceEvaluator:
    return PreferenceEvaluator(
        StaticRepository(preferences), frequency_counter=counter, clock=lambda: now
    )


@pytest.mark.parametrize(
    ("current", "expected"),
    [
        ("22:00", True),
        ("23:59", True),
        ("00:00", True),
        ("06:00", True),
        ("06:01", False),
        ("21:59", False),
        ("12:00", False),
    ],
)
def test_window_wrapping_midnight_is_inclusive(current: str, expected: bool) -> None:
    hours, minutes = map(int, current.split(":"))

    assert is_within_window(hours * 60 + minutes, 22 * 60, 6 * 60) is expected


def test_same_day_window() -> None:
    assert is_within_window(13 * 60, 12 * 60, 14 * 60) is True
    assert is_within_window(14 * 60, 12 * 60, 14 * 60) is True
    assert is_within_window(14 * 60 + 1, 12 * 60, 14 * 60) is False


def test_enabled_event_is_sent_on_configured_channels() -> None:
    decision = _evaluator(_preferences()).evaluate("user-1", "test_failure")

    assert decision.send is True
    assert decision.channels == ("email", "slack")
    assert decision.reason is None


def test_disabled_event_is_suppressed() -> None:
    decision = _evaluator(_preferences()).evaluate("user-1", "test_completion")

    assert decision.send is False
    assert decision.reason == REASON_DISABLED
    assert decision.channels == ("email",)


def test_critical_alert_bypasses_every_gate() -> None:
    """Critical alerts go out even when disabled, in quiet hours and rate limited."""

    preferences = _preferences(
        quiet_hours=QuietHours(enabled=True, start_time="00:00", end_time="23:59"),
        frequency_limit=FrequencyLimit(enabled=True, max_per_hour=1),
    )
    evaluator = _evaluator(preferences, counter=FixedCounter(50))

    decision = evaluator.evaluate("user-1", "critical_alert")

    assert decision.send is True
    assert decision.channels == ("email", "sms")
    assert evaluator.should_send("user-1", "critical_alert") is True


def test_quiet_hours_suppress_non_critical_events() -> None:
    preferences = _preferences(
        quiet_hours=QuietHours(enabled=True, start_time="22:00", end_time="06:00")
    )

    decision = _evaluator(preferences, now=MIDNIGHT).evaluate("user-1", "test_failure")

    assert decision.send is False
    assert decision.reason == REASON_QUIET_HOURS


def test_quiet_hours_use_the_configured_timezone() -> None:
    """12:00 UTC is 21:30 at UTC+09:30, inside a 21:00-06:00 window."""

    preferences = _preferences(
        quiet_hours=QuietHours(
            enabled=True, start_time="21:00", end_time="06:00", timezone="UTC+09:30"
        )
    )
    evaluator = _evaluator(preferences)

    assert evaluator.is_in_quiet_hours("user-1") is True
    assert evaluator.is_in_quiet_hours("user-1", now=NOON - timedelta(hours=4)) is False


def test_should_send_applies_quiet_hours() -> None:
    preferences = _preferences(
        quiet_hours=QuietHours(enabled=True, start_time="00:00", end_time="23:59")
    )
    evaluator = _evaluator(preferences)

    assert evaluator.is_in_quiet_hours("user-1") is True
    assert evaluator.should_send("user-1", "test_failure") is False
    assert evaluator.should_send("user-1", "critical_alert") is True


def test_out_of_range_stored_timezone_falls_back_to_default() -> None:
    preferences = _preferences(
        quiet_hours=QuietHours(
            enabled=True, start_time="21:00", end_time="06:00", timezone="UTC+30:00"
        )
    )
    evaluator = _evaluator(preferences)

    assert evaluator.is_in_quiet_hours("user-1") is False
    assert evaluator.evaluate("user-1", "test_failure").send is True


def test_disabled_quiet_hours_are_ignored() -> None:
    preferences = _preferences(
        quiet_hours=QuietHours(enabled=False, start_time="00:00", end_time="23:59")
    )

    assert _evaluator(preferences).evaluate("user-1", "test_failure").send is True


def test_frequency_limit_reached_suppresses() -> None:
    counter = FixedCounter(5)
    preferences = _preferences(frequency_limit=FrequencyLimit(enabled=True, max_per_hour=5))

    decision = _evaluator(preferences, counter=counter).evaluate("user-1", "test_failure")

    assert decision.send is False
    assert decision.reason == REASON_RATE_LIMITED
    assert counter.calls == [("user-1", NOON - timedelta(hours=1))]


def test_should_send_applies_frequency_limit() -> None:
    preferences = _preferences(frequency_limit=FrequencyLimit(enabled=True, max_per_hour=5))

    at_limit = _evaluator(preferences, counter=FixedCounter(5))
    below_limit = _evaluator(preferences, counter=FixedCounter(4))

    assert at_limit.should_send("user-1", "test_failure") is False
    assert below_limit.should_send("user-1", "test_failure") is True


def test_frequency_limit_below_maximum_allows() -> None:
    preferences = _preferences(frequency_limit=FrequencyLimit(enabled=True, max_per_hour=5))
    evaluator = _evaluator(preferences, counter=FixedCounter(4))

    assert evaluator.is_over_frequency_limit("user-1") is False
    assert evaluator.evaluate("user-1", "test_failure").send is True


def test_enabled_event_without_channels() -> None:
    preferences = _preferences(
        events={"test_failure": EventPreference(enabled=True, channels=[])}
    )

    decision = _evaluator(preferences).evaluate("user-1", "test_failure")

    assert decision.send is False
    assert decision.reason == REASON_NO_CHANNELS


def test_load_failure_falls_back_to_defaults(caplog) -> None:
    evaluator = PreferenceEvaluator(FailingRepository(), clock=lambda: NOON)

    with caplog.at_level("ERROR"):
        decision = evaluator.evaluate("user-9", "test_failure")

    assert decision.send is True
    assert decision.channels == ("email",)
    assert evaluator.should_send("user-9", "test_completion") is False
    assert "using defaults" in caplog.text


def test_missing_preferences_use_defaults() -> None:
    evaluator = _evaluator(None)

    assert evaluator.delivery_channels("new-user", "critical_alert") == ["email", "sms"]
    assert evaluator.should_send("new-user", "summary_report") is False


def test_history_counter_counts_recent_successful_deliveries(session) -> None:
    repository = NotificationHistoryRepository(session)
    statuses = ["sent", "delivered", "failed", "suppressed", "sent"]
    offsets = [10, 20, 30, 40, 90]
    for index, (status, minutes) in enumerate(zip(statuses, offsets)):
        sent_at = NOON - timedelta(minutes=minutes)
        repository.create(
            NotificationHistoryRecord(
                notification_id=f"n-{index}",
                user_id="user-1",
                event_type="test_failure",
                event_id=f"event-{index}",
                channel="email",
                delivery_method="direct",
                delivery_status=status,
                recipient="user@example.com",
                sent_at=sent_at,
                ttl=to_epoch_seconds(sent_at + timedelta(days=90)),
            )
        )

    counter = HistoryFrequencyCounter(repository)

    assert counter.count_since("user-1", NOON - timedelta(hours=1)) == 2
    assert counter.count_since("someone-else", NOON - timedelta(hours=1)) == 0


def test_get_preferences_stores_defaults(session) -> None:
    preferences = get_preferences(session, "user-1")

    assert preferences.events["test_failure"].enabled is True
    assert preferences.events["test_completion"].enabled is False
    assert NotificationPreferencesRepository(session).get("user-1") is not None


def test_update_preferences_merges_sections(session) -> None:
    update_preferences(
        session,
        "user-1",
        events={"test_completion": {"enabled": True, "channels": ["email", "webhook"]}},
        contacts={"email": " Dev@Example.com ", "phone_number": "+1 (555) 123-4567"},
    )

    updated = update_preferences(
        session,
        "user-1",
        quiet_hours={"enabled": True, "start_time": "22:00", "end_time": "07:00"},
        frequency_limit={"enabled": True, "max_per_hour": 3},
    )

    assert updated.events["test_completion"] == EventPreference(
        enabled=True, channels=["email", "webhook"]
    )
    assert updated.events["test_failure"].enabled is True
    assert updated.contacts.email == "dev@example.com"
    assert updated.contacts.phone_number == "+15551234567"
    assert updated.quiet_hours.timezone == "UTC"
    assert updated.frequency_limit.max_per_hour == 3

    stored = NotificationPreferencesRepository(session).get("user-1")
    assert stored.quiet_hours.start_time == "22:00"
    assert stored.contacts.email == "dev@example.com"


@pytest.mark.parametrize(
    ("changes", "message"),
    [
        ({"events": {"unknown_event": {"enabled": True}}}, "Unknown event type"),
        ({"events": {"test_failure": {"channels": ["pager"]}}}, "Unsupported channel"),
        ({"quiet_hours": {"start_time": "25:00"}}, "Invalid time of day"),
        ({"quiet_hours": {"timezone": "UTC+30:00"}}, "out of range"),
        ({"quiet_hours": {"timezone": "Mars/Olympus"}}, "Unknown timezone"),
        ({"frequency_limit": {"max_per_hour": 0}}, "max_per_hour"),
        ({"contacts": {"email": "not-an-email"}}, "Invalid email"),
        ({"contacts": {"phone_number": "555"}}, "E.164"),
        ({"contacts": {"webhook_url": "http://127.0.0.1/hook"}}, "private addresses"),
        (
            {"slack_webhooks": [{"webhook_url": "ftp://hooks.example.com", "channel": "#qa"}]},
            "only http and https",
        ),
    ],
)
def test_update_preferences_rejects_invalid_values(session, changes, message) -> None:
    with pytest.raises(ValueError, match=message):
        update_preferences(session, "user-1", **changes)
