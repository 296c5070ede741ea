"""Domain entity representing a notification message template."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

CHANNEL_EMAIL = "email"
CHANNEL_SMS = "sms"
CHANNEL_SLACK = "slack"
CHANNEL_WEBHOOK = "webhook"

CHANNELS = (CHANNEL_EMAIL, CHANNEL_SMS, CHANNEL_SLACK, CHANNEL_WEBHOOK)

FORMAT_HTML = "html"
FORMAT_TEXT = "text"
FORMAT_SLACK_BLOCKS = "slack_blocks"
FORMAT_JSON = "json"

TEMPLATE_FORMATS = (FORMAT_HTML, FORMAT_TEXT, FORMAT_SLACK_BLOCKS, FORMAT_JSON)

# Formats each channel is able to transmit.
CHANNEL_FORMATS: dict[str, frozenset[str]] = {
    CHANNEL_EMAIL: frozenset({FORMAT_HTML, FORMAT_TEXT}),
    CHANNEL_SMS: frozenset({FORMAT_TEXT}),
    CHANNEL_SLACK: frozenset({FORMAT_SLACK_BLOCKS}),
    CHANNEL_WEBHOOK: frozenset({FORMAT_JSON, FORMAT_TEXT}),
}


@dataclass
class NotificationTemplate:
    """Message body with ``{{placeholder}}`` tokens for an event and channel."""

    template_id: str | None
    event_type: str
    channel: str
    format: str
    body: str
    subject: str | None = None
    variables: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class RenderedNotification:
    """Template output after substitution and sensitive-data filtering."""

    channel: str
    format: str
    body: str
    subject: str | None = None


__all__ = [
    "CHANNEL_EMAIL",
    "CHANNEL_SMS",
    "CHANNEL_SLACK",
    "CHANNEL_WEBHOOK",
    "CHANNELS",
    "CHANNEL_FORMATS",
    "FORMAT_HTML",
    "FORMAT_TEXT",
    "FORMAT_SLACK_BLOCKS",
    "FORMAT_JSON",
    "TEMPLATE_FORMATS",
    "NotificationTemplate",
    "RenderedNotification",
]
