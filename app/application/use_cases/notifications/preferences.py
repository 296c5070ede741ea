"""Per-user delivery policy: loading, evaluation and updates."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Protocol

from sqlalchemy.orm import Session

from app.domain.entities import (
    CHANNELS,
    DELIVERY_STATUS_DELIVERED,
    DELIVERY_STATUS_SENT,
    EVENT_TYPES,
    SUMMARY_FREQUENCIES,
    ContactDetails,
    EventPreference,
    FrequencyLimit,
    NotificationPreferences,
    PolicyDecision,
    QuietHours,
    SlackWebhook,
    default_preferences,
    is_critical_event,
)
from app.infrastructure.repositories import (
    NotificationHistoryRepository,
    NotificationPreferencesRepository,
)
from app.infrastructure.security import sanitize_email, sanitize_phone_number, sanitize_url
from app.utils import (
    ensure_utc,
    minutes_since_midnight,
    now_utc,
    parse_clock_time,
    parse_timezone,
    resolve_timezone,
)

REASON_DISABLED = "Notifications disabled for event type"
REASON_QUIET_HOURS = "Suppressed due to quiet hours"
REASON_RATE_LIMITED = "Rate limited due to frequency limit"
REASON_NO_CHANNELS = "No delivery channels configured"

FREQUENCY_WINDOW = timedelta(hours=1)
_COUNTED_STATUSES = (DELIVERY_STATUS_SENT, DELIVERY_STATUS_DELIVERED)


class FrequencyCounter(Protocol):
    """Strategy returning how many notifications a user received since a time."""

    def count_since(self, user_id: str, since: datetime) -> int:
        ...


class HistoryFrequencyCounter:
    """Count successful deliveries recorded in the history ledger."""

    def __init__(self, repository: NotificationHistoryRepository) -> None:
        self._repository = repository

    def count_since(self, user_id: str, since: datetime) -> int:
        return self._repository.count_for_user_since(
            user_id, since, statuses=_COUNTED_STATUSES
        )


class PreferenceEvaluator:
    """Decide whether, and on which channels, an event reaches a user.

    Critical alerts always pass. For every other event type the user's toggle,
    quiet-hours window and hourly frequency limit are checked in that order.
    Evaluation never writes; if preferences cannot be loaded the built-in
    defaults apply.
    """

    def __init__(
        self,
        repository: NotificationPreferencesRepository,
        *,
        frequency_counter: FrequencyCounter | None = None,
        clock: Callable[[], datetime] = now_utc,
        default_timezone: str = "UTC",
        logger: logging.Logger | None = None,
    ) -> None:
        self._repository = repository
        self._frequency_counter = frequency_counter
        self._clock = clock
        self._default_timezone = default_timezone
        self._logger = logger or logging.getLogger(__name__)

    def load(self, user_id: str) -> NotificationPreferences:
        try:
            preferences = self._repository.get(user_id)
        except Exception:
            self._logger.exception(
                "Failed to load notification preferences for %s; using defaults", user_id
            )
            return default_preferences(user_id)
        return preferences or default_preferences(user_id)

    def should_send(self, user_id: str, event_type: str) -> bool:
        return self._blocking_reason(self.load(user_id), event_type, self._clock()) is None

    def delivery_channels(self, user_id: str, event_type: str) -> list[str]:
        return _configured_channels(self.load(user_id), event_type)

    def is_in_quiet_hours(self, user_id: str, *, now: datetime | None = None) -> bool:
        return self._in_quiet_hours(self.load(user_id), now or self._clock())

    def is_over_frequency_limit(self, user_id: str, *, now: datetime | None = None) -> bool:
        return self._over_frequency_limit(self.load(user_id), now or self._clock())

    def evaluate(
        self,
        user_id: str,
        event_type: str,
        *,
        preferences: NotificationPreferences | None = None,
    ) -> PolicyDecision:
        """Return the full policy decision, loading preferences only once.

        Callers that already hold the user's preferences may pass them in.
        """

        if preferences is None:
            preferences = self.load(user_id)
        channels = tuple(_configured_channels(preferences, event_type))
        reason = self._blocking_reason(preferences, event_type, self._clock())
        if reason is not None:
            return PolicyDecision(send=False, channels=channels, reason=reason)
        if not channels:
            return PolicyDecision(send=False, channels=(), reason=REASON_NO_CHANNELS)
        return PolicyDecision(send=True, channels=channels)

    def _blocking_reason(
        self, preferences: NotificationPreferences, event_type: str, now: datetime
    ) -> str | None:
        if is_critical_event(event_type):
            return None
        if not _is_enabled(preferences, event_type):
            return REASON_DISABLED
        if self._in_quiet_hours(preferences, now):
            return REASON_QUIET_HOURS
        if self._over_frequency_limit(preferences, now):
            return REASON_RATE_LIMITED
        return None

    def _in_quiet_hours(self, preferences: NotificationPreferences, now: datetime) -> bool:
        quiet_hours = preferences.quiet_hours
        if quiet_hours is None or not quiet_hours.enabled:
            return False
        try:
            start = minutes_since_midnight(parse_clock_time(quiet_hours.start_time))
            end = minutes_since_midnight(parse_clock_time(quiet_hours.end_time))
        except ValueError as exc:
            self._logger.warning("Ignoring invalid quiet hours for %s: %s", preferences.user_id, exc)
            return False

        tz = resolve_timezone(quiet_hours.timezone, default=self._default_timezone)
        current = minutes_since_midnight(ensure_utc(now).astimezone(tz))
        return is_within_window(current, start, end)

    def _over_frequency_limit(self, preferences: NotificationPreferences, now: datetime) -> bool:
        limit = preferences.frequency_limit
        if limit is None or not limit.enabled or self._frequency_counter is None:
            return False
        try:
            count = self._frequency_counter.count_since(preferences.user_id, now - FREQUENCY_WINDOW)
        except Exception:
            self._logger.exception("Frequency count failed for %s", preferences.user_id)
            return False
        return count >= limit.max_per_hour


def is_within_window(current: int, start: int, end: int) -> bool:
    """Return whether minute-of-day ``current`` falls in ``[start, end]``.

    Windows with ``start > end`` wrap around midnight.
    """

    if start > end:
        return current >= start or current <= end
    return start <= current <= end


def _is_enabled(preferences: NotificationPreferences, event_type: str) -> bool:
    preference = preferences.event_preference(event_type)
    return bool(preference and preference.enabled)


def _configured_channels(preferences: NotificationPreferences, event_type: str) -> list[str]:
    preference = preferences.event_preference(event_type)
    if preference is None:
        return []
    channels: list[str] = []
    for channel in preference.channels:
        if channel in CHANNELS and channel not in channels:
            channels.append(channel)
    return channels


def get_preferences(session: Session, user_id: str) -> NotificationPreferences:
    """Return the stored preferences, creating the defaults on first access."""

    repository = NotificationPreferencesRepository(session)
    preferences = repository.get(user_id)
    if preferences is None:
        preferences = repository.save(default_preferences(user_id, now=now_utc()))
    return preferences


def update_preferences(
    session: Session,
    user_id: str,
    *,
    events: Mapping[str, Mapping[str, Any]] | None = None,
    quiet_hours: Mapping[str, Any] | None = None,
    frequency_limit: Mapping[str, Any] | None = None,
    contacts: Mapping[str, Any] | None = None,
    slack_webhooks: Iterable[Mapping[str, Any]] | None = None,
) -> NotificationPreferences:
    """Merge the supplied sections into the user's stored preferences."""

    current = get_preferences(session, user_id)
    merged_events = dict(current.events)
    for event_type, values in (events or {}).items():
        merged_events[event_type] = _merge_event_preference(
            event_type, merged_events.get(event_type), values
        )

    updated = replace(
        current,
        events=merged_events,
        quiet_hours=_build_quiet_hours(quiet_hours, current.quiet_hours)
        if quiet_hours is not None
        else current.quiet_hours,
        frequency_limit=_build_frequency_limit(frequency_limit, current.frequency_limit)
        if frequency_limit is not None
        else current.frequency_limit,
        contacts=_build_contacts(contacts, current.contacts)
        if contacts is not None
        else current.contacts,
        slack_webhooks=[_build_slack_webhook(item) for item in slack_webhooks]
        if slack_webhooks is not None
        else current.slack_webhooks,
        updated_at=now_utc(),
    )
    return NotificationPreferencesRepository(session).save(updated)


def _merge_event_preference(
    event_type: str, current: EventPreference | None, values: Mapping[str, Any]
) -> EventPreference:
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type '{event_type}'")
    base = current or EventPreference(enabled=False, channels=[])
    channels = values.get("channels")
    if channels is not None:
        unknown = [channel for channel in channels if channel not in CHANNELS]
        if unknown:
            raise ValueError(f"Unsupported channel(s): {', '.join(map(str, unknown))}")
        channels = list(dict.fromkeys(channels))
    frequency = values.get("frequency", base.frequency)
    if frequency is not None and frequency not in SUMMARY_FREQUENCIES:
        raise ValueError(f"Unsupported report frequency '{frequency}'")
    enabled = values.get("enabled")
    return EventPreference(
        enabled=base.enabled if enabled is None else bool(enabled),
        channels=base.channels if channels is None else channels,
        frequency=frequency,
    )


def _build_quiet_hours(values: Mapping[str, Any], current: QuietHours | None) -> QuietHours:
    base = current or QuietHours(enabled=False, start_time="22:00", end_time="08:00")
    start_time = str(values.get("start_time", base.start_time))
    end_time = str(values.get("end_time", base.end_time))
    parse_clock_time(start_time)
    parse_clock_time(end_time)
    timezone_name = str(values.get("timezone") or base.timezone or "UTC").strip()
    parse_timezone(timezone_name)
    enabled = values.get("enabled")
    return QuietHours(
        enabled=base.enabled if enabled is None else bool(enabled),
        start_time=start_time,
        end_time=end_time,
        timezone=timezone_name,
    )


def _build_frequency_limit(
    values: Mapping[str, Any], current: FrequencyLimit | None
) -> FrequencyLimit:
    base = current or FrequencyLimit(enabled=False)
    max_per_hour = int(values.get("max_per_hour", base.max_per_hour))
    if max_per_hour < 1:
        raise ValueError("max_per_hour must be a positive integer")
    enabled = values.get("enabled")
    return FrequencyLimit(
        enabled=base.enabled if enabled is None else bool(enabled),
        max_per_hour=max_per_hour,
    )


def _build_contacts(values: Mapping[str, Any], current: ContactDetails) -> ContactDetails:
    def _clean(key: str, sanitizer: Callable[[str], str]) -> str | None:
        if key not in values:
            return getattr(current, key)
        raw = values[key]
        return sanitizer(raw) if raw else None

    return ContactDetails(
        email=_clean("email", sanitize_email),
        phone_number=_clean("phone_number", sanitize_phone_number),
        webhook_url=_clean("webhook_url", sanitize_url),
    )


def _build_slack_webhook(values: Mapping[str, Any]) -> SlackWebhook:
    event_types = list(values.get("event_types") or [])
    unknown = [event_type for event_type in event_types if event_type not in EVENT_TYPES]
    if unknown:
        raise ValueError(f"Unknown event type(s): {', '.join(map(str, unknown))}")
    return SlackWebhook(
        webhook_url=sanitize_url(str(values.get("webhook_url") or "")),
        channel=str(values.get("channel") or ""),
        event_types=event_types,
    )


__all__ = [
    "FREQUENCY_WINDOW",
    "REASON_DISABLED",
    "REASON_NO_CHANNELS",
    "REASON_QUIET_HOURS",
    "REASON_RATE_LIMITED",
    "FrequencyCounter",
    "HistoryFrequencyCounter",
    "PreferenceEvaluator",
    "get_preferences",
    "is_within_window",
    "update_preferences",
]
