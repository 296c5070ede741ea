"""SQLAlchemy model for the notification delivery ledger."""

from sqlalchemy import JSON, BigInteger, Column, DateTime, Index, Integer, String, Text

from app.infrastructure.database import Base
from app.utils import now_utc


class NotificationHistoryModel(Base):
    """Database representation of a single delivery attempt."""

    __tablename__ = "notification_history"

    notification_id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False)
    event_type = Column(String(50), nullable=False)
    event_id = Column(String(128), nullable=False)
    channel = Column(String(20), nullable=False)
    delivery_method = Column(String(20), nullable=False)
    delivery_status = Column(String(20), nullable=False, index=True)
    recipient = Column(String(512), nullable=False)
    message_id = Column(String(255), nullable=True)
    error_message = Column(Text, nullable=True)
    retry_count = Column(Integer, nullable=False, default=0)
    extra = Column("metadata", JSON, nullable=False, default=dict)
    sent_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    ttl = Column(BigInteger, nullable=False, index=True)

    __table_args__ = (
        Index("ix_notification_history_user_time", "user_id", "sent_at"),
        Index("ix_notification_history_event_time", "event_type", "sent_at"),
    )


__all__ = ["NotificationHistoryModel"]
