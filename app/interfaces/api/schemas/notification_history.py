"""History ledger schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NotificationHistoryRead(BaseModel):
    notification_id: str
    user_id: str
    event_type: str
    event_id: str
    channel: str
    delivery_method: str
    delivery_status: str
    recipient: str
    retry_count: int
    metadata: dict[str, str | None] = Field(default_factory=dict)
    sent_at: datetime
    ttl: int
    delivered_at: datetime | None = None
    error_message: str | None = None
    message_id: str | None = None

    model_config = ConfigDict(from_attributes=True)


class NotificationHistoryPageRead(BaseModel):
    items: list[NotificationHistoryRead]
    next_token: str | None = None


__all__ = ["NotificationHistoryPageRead", "NotificationHistoryRead"]
