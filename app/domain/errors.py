"""Exceptions raised by the notification delivery pipeline."""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for notification pipeline errors."""


class InvalidNotificationEventError(NotificationError):
    """Raised when an inbound message cannot be parsed into an event.

    The message is a poison input: it is surfaced to the caller so the queue's
    retry/dead-letter policy can take over.
    """

    def __init__(self, message: str, *, message_id: str | None = None) -> None:
        super().__init__(message)
        self.message_id = message_id


class PublishError(NotificationError):
    """Raised by publishers when a managed publish call fails."""


__all__ = [
    "InvalidNotificationEventError",
    "NotificationError",
    "PublishError",
]
