"""Persistence helpers for notification preferences."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.domain.entities import (
    ContactDetails,
    EventPreference,
    FrequencyLimit,
    NotificationPreferences,
    QuietHours,
    SlackWebhook,
)
from app.infrastructure.models import NotificationPreferencesModel
from app.utils import ensure_utc, now_utc


class NotificationPreferencesRepository:
    """Load and store :class:`NotificationPreferences` documents."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> NotificationPreferences | None:
        model = self.session.get(NotificationPreferencesModel, user_id)
        return self._to_entity(model) if model else None

    def save(self, preferences: NotificationPreferences) -> NotificationPreferences:
        """Insert or replace the preferences stored for ``preferences.user_id``."""

        model = self.session.get(NotificationPreferencesModel, preferences.user_id)
        if model is None:
            model = NotificationPreferencesModel(user_id=preferences.user_id)
            model.created_at = ensure_utc(preferences.created_at) or now_utc()
        self._apply_entity_to_model(model, preferences)
        model.updated_at = ensure_utc(preferences.updated_at) or now_utc()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationPreferencesModel, preferences: NotificationPreferences
    ) -> None:
        model.events = {
            event_type: _event_preference_to_dict(preference)
            for event_type, preference in preferences.events.items()
        }
        model.quiet_hours = (
            {
                "enabled": preferences.quiet_hours.enabled,
                "start_time": preferences.quiet_hours.start_time,
                "end_time": preferences.quiet_hours.end_time,
                "timezone": preferences.quiet_hours.timezone,
            }
            if preferences.quiet_hours
            else None
        )
        model.frequency_limit = (
            {
                "enabled": preferences.frequency_limit.enabled,
                "max_per_hour": preferences.frequency_limit.max_per_hour,
            }
            if preferences.frequency_limit
            else None
        )
        contacts = preferences.contacts or ContactDetails()
        model.contacts = {
            "email": contacts.email,
            "phone_number": contacts.phone_number,
            "webhook_url": contacts.webhook_url,
        }
        model.slack_webhooks = [
            {
                "webhook_url": webhook.webhook_url,
                "channel": webhook.channel,
                "event_types": list(webhook.event_types),
            }
            for webhook in preferences.slack_webhooks
        ]

    @staticmethod
    def _to_entity(model: NotificationPreferencesModel) -> NotificationPreferences:
        quiet_hours = model.quiet_hours or None
        frequency_limit = model.frequency_limit or None
        contacts = model.contacts or {}
        return NotificationPreferences(
            user_id=model.user_id,
            events={
                event_type: _event_preference_from_dict(data)
                for event_type, data in (model.events or {}).items()
            },
            quiet_hours=QuietHours(
                enabled=bool(quiet_hours.get("enabled")),
                start_time=str(quiet_hours.get("start_time", "")),
                end_time=str(quiet_hours.get("end_time", "")),
                timezone=str(quiet_hours.get("timezone") or "UTC"),
            )
            if quiet_hours
            else None,
            frequency_limit=FrequencyLimit(
                enabled=bool(frequency_limit.get("enabled")),
                max_per_hour=int(frequency_limit.get("max_per_hour") or 0),
            )
            if frequency_limit
            else None,
            contacts=ContactDetails(
                email=contacts.get("email"),
                phone_number=contacts.get("phone_number"),
                webhook_url=contacts.get("webhook_url"),
            ),
            slack_webhooks=[
                SlackWebhook(
                    webhook_url=item["webhook_url"],
                    channel=item.get("channel", ""),
                    event_types=list(item.get("event_types") or []),
                )
                for item in (model.slack_webhooks or [])
                if item.get("webhook_url")
            ],
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


def _event_preference_to_dict(preference: EventPreference) -> dict[str, Any]:
    data: dict[str, Any] = {
        "enabled": preference.enabled,
        "channels": list(preference.channels),
    }
    if preference.frequency is not None:
        data["frequency"] = preference.frequency
    return data


def _event_preference_from_dict(data: dict[str, Any]) -> EventPreference:
    return EventPreference(
        enabled=bool(data.get("enabled")),
        channels=list(data.get("channels") or []),
        frequency=data.get("frequency"),
    )


__all__ = ["NotificationPreferencesRepository"]
