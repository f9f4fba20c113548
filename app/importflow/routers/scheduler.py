from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.importflow.core.config import settings
from app.importflow.core.deps import get_email_transport, get_telemetry
from app.importflow.core.error_catalog import AppError, ErrorCatalog
from app.importflow.db.session import get_db
from app.importflow.repos.notification_log import NotificationLogRepository
from app.importflow.schemas.scheduler import JobSummaryResponse, SchedulerLogListResponse, SchedulerLogResponse
from app.importflow.services.digest import PERIOD_WINDOWS, digest_event_type
from app.importflow.services.jobs import run_job

router = APIRouter()


@router.post("/importflow/scheduler/trigger/{job_name}", response_model=JobSummaryResponse)
def trigger_job(
    job_name: str,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    if not settings.OPS_ENABLE_SCHEDULED_JOBS:
        raise AppError(ErrorCatalog.JOBS_DISABLED)
    return run_job(db, job_name, transport=transport, telemetry=telemetry).to_dict()


@router.get("/importflow/scheduler/logs", response_model=SchedulerLogListResponse)
def scheduler_logs(limit: int = Query(default=50, ge=1, le=500), db=Depends(get_db)):
    event_types = [digest_event_type(period) for period in PERIOD_WINDOWS]
    rows = NotificationLogRepository(db).list_by_event_types(event_types, limit=limit)
    return SchedulerLogListResponse(
        rows=[SchedulerLogResponse.model_validate(row) for row in rows],
        total=len(rows),
    )
