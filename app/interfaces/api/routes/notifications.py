"""Endpoints for event intake and the delivery history."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NOTIFICATION_NOT_FOUND,
    NotificationProcessor,
    get_history_record,
    query_history,
)
from app.domain.entities import HistoryQuery
from app.infrastructure.database import get_db
from app.interfaces.api.dependencies import get_notification_processor
from app.interfaces.api.schemas import (
    ChannelResultRead,
    NotificationEventAccepted,
    NotificationEventIn,
    NotificationHistoryPageRead,
    NotificationHistoryRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post(
    "/events",
    response_model=NotificationEventAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def submit_event(
    payload: NotificationEventIn,
    processor: NotificationProcessor = Depends(get_notification_processor),
) -> NotificationEventAccepted:
    """Run a notification event through the delivery pipeline."""

    event = payload.to_domain()
    results = await processor.process(event)
    return NotificationEventAccepted(
        event_id=event.event_id,
        results=[
            ChannelResultRead(
                notification_id=result.notification_id,
                channel=result.channel,
                status=result.status,
                delivery_method=result.delivery_method,
                error_message=result.error_message,
            )
            for result in results
        ],
    )


@router.get("/history", response_model=NotificationHistoryPageRead)
def list_history(
    user_id: str | None = None,
    event_type: str | None = None,
    channel: str | None = None,
    delivery_status: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = Query(default=50, ge=1, le=100),
    next_token: str | None = None,
    db: Session = Depends(get_db),
) -> NotificationHistoryPageRead:
    filters = HistoryQuery(
        user_id=user_id,
        event_type=event_type,
        channel=channel,
        delivery_status=delivery_status,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        next_token=next_token,
    )
    try:
        page = query_history(db, filters)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return NotificationHistoryPageRead(
        items=[NotificationHistoryRead.model_validate(record) for record in page.records],
        next_token=page.next_token,
    )


@router.get("/history/{notification_id}", response_model=NotificationHistoryRead)
def read_history_record(
    notification_id: str,
    db: Session = Depends(get_db),
) -> NotificationHistoryRead:
    try:
        record = get_history_record(db, notification_id)
    except ValueError as exc:
        status_code = status.HTTP_400_BAD_REQUEST
        if str(exc) == NOTIFICATION_NOT_FOUND:
            status_code = status.HTTP_404_NOT_FOUND
        raise HTTPException(status_code=status_code, detail=str(exc)) from exc
    return NotificationHistoryRead.model_validate(record)
