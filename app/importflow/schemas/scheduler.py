from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class JobSummaryResponse(BaseModel):
    job: str
    processed: int
    failed: int
    details: dict


class SchedulerLogResponse(BaseModel):
    id: int
    user_id: str
    event_type: str
    subject: str
    status: str
    error_message: str | None
    sent_at: datetime

    model_config = {"from_attributes": True}


class SchedulerLogListResponse(BaseModel):
    rows: list[SchedulerLogResponse]
    total: int
