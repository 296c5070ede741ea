"""SQLAlchemy model for notification templates."""

from sqlalchemy import JSON, Column, DateTime, String, Text, UniqueConstraint

from app.infrastructure.database import Base
from app.utils import now_utc


class NotificationTemplateModel(Base):
    """Database representation of a template for an event type and channel."""

    __tablename__ = "notification_template"

    template_id = Column(String(36), primary_key=True)
    event_type = Column(String(50), nullable=False)
    channel = Column(String(20), nullable=False)
    format = Column(String(20), nullable=False)
    subject = Column(String(255), nullable=True)
    body = Column(Text, nullable=False)
    variables = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=now_utc)

    __table_args__ = (
        UniqueConstraint("event_type", "channel", name="uq_notification_template_event_channel"),
    )


__all__ = ["NotificationTemplateModel"]
