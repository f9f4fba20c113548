from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.importflow.core.deps import get_email_transport, get_telemetry
from app.importflow.db.session import get_db
from app.importflow.schemas.notifications import (
    NotificationEventRequest,
    NotificationEventResponse,
    NotificationHistoryResponse,
    NotificationLogResponse,
    NotificationPreferenceResponse,
    NotificationPreferenceUpdateRequest,
    NotificationStatsResponse,
)
from app.importflow.services.notifications import NotificationService
from app.importflow.services.preferences import PreferenceService

router = APIRouter()


@router.get(
    "/importflow/notifications/preferences/{user_id}",
    response_model=NotificationPreferenceResponse,
)
def get_preferences(user_id: str, db=Depends(get_db)):
    return NotificationPreferenceResponse.model_validate(PreferenceService(db).resolve(user_id))


@router.put(
    "/importflow/notifications/preferences/{user_id}",
    response_model=NotificationPreferenceResponse,
)
def update_preferences(user_id: str, payload: NotificationPreferenceUpdateRequest, db=Depends(get_db)):
    fields = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key == "email_address"
    }
    preference = PreferenceService(db).update(user_id, fields)
    return NotificationPreferenceResponse.model_validate(preference)


@router.get("/importflow/notifications/history/{user_id}", response_model=NotificationHistoryResponse)
def notification_history(
    user_id: str,
    event_type: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    db=Depends(get_db),
    transport=Depends(get_email_transport),
):
    rows = NotificationService(db, transport).history(user_id, event_type=event_type, limit=limit)
    return NotificationHistoryResponse(
        rows=[NotificationLogResponse.model_validate(row) for row in rows],
        total=len(rows),
    )


@router.get("/importflow/notifications/stats/{user_id}", response_model=NotificationStatsResponse)
def notification_stats(user_id: str, db=Depends(get_db), transport=Depends(get_email_transport)):
    return NotificationService(db, transport).stats(user_id)


@router.post("/importflow/notifications/events", response_model=NotificationEventResponse, status_code=202)
def publish_event(
    payload: NotificationEventRequest,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    result = NotificationService(db, transport, telemetry).publish(
        payload.event_type,
        payload.event_data,
        payload.shipment_id,
    )
    return NotificationEventResponse(
        event_type=result.event_type,
        recipients=result.recipients,
        queued=result.queued,
        sent=result.sent,
        failed=result.failed,
    )
