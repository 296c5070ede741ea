"""Endpoints to read and update per-user notification preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import get_preferences, update_preferences
from app.infrastructure.database import get_db
from app.interfaces.api.schemas import (
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
)

router = APIRouter(prefix="/notifications/preferences", tags=["notification-preferences"])


@router.get("/{user_id}", response_model=NotificationPreferencesRead)
def read_preferences(user_id: str, db: Session = Depends(get_db)) -> NotificationPreferencesRead:
    """Return the user's preferences, creating the defaults on first access."""

    return NotificationPreferencesRead.model_validate(get_preferences(db, user_id))


@router.put("/{user_id}", response_model=NotificationPreferencesRead)
def replace_preferences(
    user_id: str,
    payload: NotificationPreferencesUpdate,
    db: Session = Depends(get_db),
) -> NotificationPreferencesRead:
    changes = payload.model_dump(exclude_unset=True)
    events = changes.get("events")
    if events is not None:
        events = {
            event_type: {key: value for key, value in values.items() if value is not None}
            for event_type, values in events.items()
        }
    try:
        preferences = update_preferences(
            db,
            user_id,
            events=events,
            quiet_hours=changes.get("quiet_hours"),
            frequency_limit=changes.get("frequency_limit"),
            contacts=changes.get("contacts"),
            slack_webhooks=changes.get("slack_webhooks"),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return NotificationPreferencesRead.model_validate(preferences)
