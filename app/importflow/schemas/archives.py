from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ArchiveSummaryResponse(BaseModel):
    file_name: str
    display_name: str | None
    archive_type: str
    reason: str | None
    total_shipments: int
    archived_at: datetime

    model_config = {"from_attributes": True}


class ArchiveResponse(ArchiveSummaryResponse):
    payload: list[dict]


class ArchiveListResponse(BaseModel):
    rows: list[ArchiveSummaryResponse]
    total: int


class ArchiveCreateRequest(BaseModel):
    shipment_ids: list[str] = Field(default_factory=list)
    archive_type: Literal["manual", "import-snapshot"] = "manual"
    reason: str | None = None


class ArchiveRenameRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=255)


class AutoArchiveShipment(BaseModel):
    id: str
    supplier: str
    order_ref: str
    arrived_date: datetime
    days_old: int


class AutoArchiveStatsResponse(BaseModel):
    threshold_days: int
    total_arrived: int
    eligible_for_archive: int
    eligible_shipments: list[AutoArchiveShipment]


class AutoArchiveRequest(BaseModel):
    threshold_days: int | None = Field(default=None, ge=0)
