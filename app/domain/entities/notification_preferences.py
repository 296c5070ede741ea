"""Domain entities describing per-user notification preferences."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .notification_event import (
    EVENT_CRITICAL_ALERT,
    EVENT_SUMMARY_REPORT,
    EVENT_TEST_COMPLETION,
    EVENT_TEST_FAILURE,
)
from .notification_template import CHANNEL_EMAIL, CHANNEL_SMS

SUMMARY_FREQUENCIES = ("daily", "weekly", "monthly", "disabled")


@dataclass
class EventPreference:
    """Toggle and channel list for a single event type."""

    enabled: bool
    channels: list[str] = field(default_factory=list)
    frequency: str | None = None


@dataclass
class QuietHours:
    """Time-of-day window during which non-critical delivery is suppressed."""

    enabled: bool
    start_time: str
    end_time: str
    timezone: str = "UTC"


@dataclass
class FrequencyLimit:
    enabled: bool
    max_per_hour: int = 10


@dataclass
class SlackWebhook:
    webhook_url: str
    channel: str
    event_types: list[str] = field(default_factory=list)


@dataclass
class ContactDetails:
    """Recipient addresses used when an event does not carry its own."""

    email: str | None = None
    phone_number: str | None = None
    webhook_url: str | None = None


@dataclass
class NotificationPreferences:
    """Complete delivery policy configured by a user."""

    user_id: str
    events: dict[str, EventPreference]
    quiet_hours: QuietHours | None = None
    frequency_limit: FrequencyLimit | None = None
    contacts: ContactDetails = field(default_factory=ContactDetails)
    slack_webhooks: list[SlackWebhook] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def event_preference(self, event_type: str) -> EventPreference | None:
        return self.events.get(event_type)

    def slack_webhook_for(self, event_type: str) -> SlackWebhook | None:
        """Return the first Slack webhook subscribed to ``event_type``."""

        for webhook in self.slack_webhooks:
            if not webhook.event_types or event_type in webhook.event_types:
                return webhook
        return None


def default_preferences(user_id: str, *, now: datetime | None = None) -> NotificationPreferences:
    """Return the built-in preferences applied when a user has none stored.

    Test failures and critical alerts are enabled; everything else is off.
    """

    return NotificationPreferences(
        user_id=user_id,
        events={
            EVENT_TEST_COMPLETION: EventPreference(enabled=False, channels=[CHANNEL_EMAIL]),
            EVENT_TEST_FAILURE: EventPreference(enabled=True, channels=[CHANNEL_EMAIL]),
            EVENT_CRITICAL_ALERT: EventPreference(
                enabled=True, channels=[CHANNEL_EMAIL, CHANNEL_SMS]
            ),
            EVENT_SUMMARY_REPORT: EventPreference(
                enabled=False, channels=[CHANNEL_EMAIL], frequency="weekly"
            ),
        },
        created_at=now,
        updated_at=now,
    )


__all__ = [
    "SUMMARY_FREQUENCIES",
    "ContactDetails",
    "EventPreference",
    "FrequencyLimit",
    "NotificationPreferences",
    "QuietHours",
    "SlackWebhook",
    "default_preferences",
]
