"""Notification preference schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class EventPreferenceSchema(BaseModel):
    enabled: bool
    channels: list[str] = Field(default_factory=list)
    frequency: str | None = None

    model_config = ConfigDict(from_attributes=True)


class EventPreferenceUpdate(BaseModel):
    enabled: bool | None = None
    channels: list[str] | None = None
    frequency: str | None = None

    model_config = ConfigDict(extra="forbid")


class QuietHoursSchema(BaseModel):
    enabled: bool
    start_time: str = Field(..., pattern=r"^\d{1,2}:\d{2}$")
    end_time: str = Field(..., pattern=r"^\d{1,2}:\d{2}$")
    timezone: str = "UTC"

    model_config = ConfigDict(from_attributes=True)


class FrequencyLimitSchema(BaseModel):
    enabled: bool
    max_per_hour: int = Field(default=10, ge=1)

    model_config = ConfigDict(from_attributes=True)


class ContactDetailsSchema(BaseModel):
    email: str | None = None
    phone_number: str | None = None
    webhook_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class SlackWebhookSchema(BaseModel):
    webhook_url: str
    channel: str = ""
    event_types: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class NotificationPreferencesRead(BaseModel):
    user_id: str
    events: dict[str, EventPreferenceSchema]
    quiet_hours: QuietHoursSchema | None = None
    frequency_limit: FrequencyLimitSchema | None = None
    contacts: ContactDetailsSchema
    slack_webhooks: list[SlackWebhookSchema] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; sections left out keep their stored values."""

    events: dict[str, EventPreferenceUpdate] | None = None
    quiet_hours: QuietHoursSchema | None = None
    frequency_limit: FrequencyLimitSchema | None = None
    contacts: ContactDetailsSchema | None = None
    slack_webhooks: list[SlackWebhookSchema] | None = None

    model_config = ConfigDict(extra="forbid")


__all__ = [
    "ContactDetailsSchema",
    "EventPreferenceSchema",
    "EventPreferenceUpdate",
    "FrequencyLimitSchema",
    "NotificationPreferencesRead",
    "NotificationPreferencesUpdate",
    "QuietHoursSchema",
    "SlackWebhookSchema",
]
