"""Notification template schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NotificationTemplateCreate(BaseModel):
    event_type: str
    channel: str
    format: str
    body: str = Field(..., min_length=1)
    subject: str | None = Field(default=None, max_length=255)
    variables: list[str] | None = None

    model_config = ConfigDict(extra="forbid")


class NotificationTemplateUpdate(BaseModel):
    event_type: str | None = None
    channel: str | None = None
    format: str | None = None
    body: str | None = Field(default=None, min_length=1)
    subject: str | None = Field(default=None, max_length=255)
    variables: list[str] | None = None

    model_config = ConfigDict(extra="forbid")


class NotificationTemplateRead(BaseModel):
    template_id: str
    event_type: str
    channel: str
    format: str
    subject: str | None = None
    body: str
    variables: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "NotificationTemplateCreate",
    "NotificationTemplateRead",
    "NotificationTemplateUpdate",
]
