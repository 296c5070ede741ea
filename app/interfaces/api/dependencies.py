"""FastAPI dependency utilities."""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NotificationProcessor,
    build_notification_processor,
)
from app.config import Settings, get_settings
from app.infrastructure.database import get_db


def get_app_settings() -> Settings:
    return get_settings()


def get_notification_processor(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> NotificationProcessor:
    """Return a processor bound to the request's database session."""

    return build_notification_processor(db, settings)


__all__ = ["get_app_settings", "get_db", "get_notification_processor"]
