"""Endpoints for administering notification templates."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    TEMPLATE_NOT_FOUND,
    create_notification_template,
    list_notification_templates,
    update_notification_template,
)
from app.infrastructure.database import get_db
from app.interfaces.api.schemas import (
    NotificationTemplateCreate,
    NotificationTemplateRead,
    NotificationTemplateUpdate,
)

router = APIRouter(prefix="/notifications/templates", tags=["notification-templates"])


def _status_for(exc: ValueError) -> int:
    detail = str(exc)
    if detail == TEMPLATE_NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    if detail.endswith("already exists"):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


@router.get("", response_model=list[NotificationTemplateRead])
def list_templates(
    event_type: str | None = None,
    channel: str | None = None,
    db: Session = Depends(get_db),
) -> list[NotificationTemplateRead]:
    templates = list_notification_templates(db, event_type=event_type, channel=channel)
    return [NotificationTemplateRead.model_validate(template) for template in templates]


@router.post("", response_model=NotificationTemplateRead, status_code=status.HTTP_201_CREATED)
def create_template(
    payload: NotificationTemplateCreate,
    db: Session = Depends(get_db),
) -> NotificationTemplateRead:
    try:
        template = create_notification_template(db, **payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return NotificationTemplateRead.model_validate(template)


@router.put("/{template_id}", response_model=NotificationTemplateRead)
def update_template(
    template_id: str,
    payload: NotificationTemplateUpdate,
    db: Session = Depends(get_db),
) -> NotificationTemplateRead:
    try:
        template = update_notification_template(
            db, template_id=template_id, **payload.model_dump(exclude_unset=True)
        )
    except ValueError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return NotificationTemplateRead.model_validate(template)
