from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.importflow.core.deps import get_telemetry
from app.importflow.db.session import get_db
from app.importflow.schemas.archives import (
    ArchiveCreateRequest,
    ArchiveListResponse,
    ArchiveRenameRequest,
    ArchiveResponse,
    ArchiveSummaryResponse,
    AutoArchiveRequest,
    AutoArchiveStatsResponse,
)
from app.importflow.schemas.scheduler import JobSummaryResponse
from app.importflow.services.archive import ArchiveService

router = APIRouter()


@router.get("/importflow/archives", response_model=ArchiveListResponse)
def list_archives(
    archive_type: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=500),
    db=Depends(get_db),
):
    rows = ArchiveService(db).list_archives(archive_type=archive_type, limit=limit)
    return ArchiveListResponse(
        rows=[ArchiveSummaryResponse.model_validate(row) for row in rows],
        total=len(rows),
    )


@router.get("/importflow/archives/auto/stats", response_model=AutoArchiveStatsResponse)
def auto_archive_stats(
    threshold_days: int | None = Query(default=None, ge=0),
    db=Depends(get_db),
):
    return ArchiveService(db).auto_archive_stats(threshold_days)


@router.post("/importflow/archives/auto", response_model=JobSummaryResponse)
def run_auto_archive(
    payload: AutoArchiveRequest | None = None,
    db=Depends(get_db),
    telemetry=Depends(get_telemetry),
):
    threshold_days = payload.threshold_days if payload else None
    return ArchiveService(db, telemetry).run_auto_archive(threshold_days).to_dict()


@router.post("/importflow/archives", response_model=ArchiveResponse, status_code=201)
def create_archive(
    payload: ArchiveCreateRequest,
    db=Depends(get_db),
    telemetry=Depends(get_telemetry),
):
    record = ArchiveService(db, telemetry).archive_by_ids(
        payload.shipment_ids,
        payload.archive_type,
        payload.reason,
    )
    return ArchiveResponse.model_validate(record)


@router.get("/importflow/archives/{archive_key}", response_model=ArchiveResponse)
def get_archive(archive_key: str, db=Depends(get_db)):
    return ArchiveResponse.model_validate(ArchiveService(db).get(archive_key))


@router.patch("/importflow/archives/{archive_key}", response_model=ArchiveSummaryResponse)
def rename_archive(archive_key: str, payload: ArchiveRenameRequest, db=Depends(get_db)):
    record = ArchiveService(db).rename(archive_key, payload.display_name)
    return ArchiveSummaryResponse.model_validate(record)
