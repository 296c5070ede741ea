"""SQLAlchemy model for per-user notification preferences."""

from sqlalchemy import JSON, Column, DateTime, String

from app.infrastructure.database import Base
from app.utils import now_utc


class NotificationPreferencesModel(Base):
    """Preferences document stored per user."""

    __tablename__ = "notification_preferences"

    user_id = Column(String(128), primary_key=True)
    events = Column(JSON, nullable=False, default=dict)
    quiet_hours = Column(JSON, nullable=True)
    frequency_limit = Column(JSON, nullable=True)
    contacts = Column(JSON, nullable=False, default=dict)
    slack_webhooks = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=now_utc)


__all__ = ["NotificationPreferencesModel"]
