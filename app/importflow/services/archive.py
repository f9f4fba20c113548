from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from typing import Iterable

from sqlalchemy import inspect as sa_inspect

from app.importflow.core.config import settings
from app.importflow.core.error_catalog import AppError, ErrorCatalog
from app.importflow.core.job_summary import JobSummary
from app.importflow.core.lifecycle import ShipmentStatus
from app.importflow.core.logging import log_json
from app.importflow.core.metrics import metrics
from app.importflow.core.telemetry import NullTelemetrySink, TelemetryEvent, TelemetrySink
from app.importflow.db.models import ArchiveRecord, Shipment
from app.importflow.repos.archives import ArchiveRepository
from app.importflow.repos.shipments import ShipmentRepository
from app.importflow.services.transitions import ShipmentTransitionService

logger = logging.getLogger(__name__)

ARCHIVE_TYPE_MANUAL = "manual"
ARCHIVE_TYPE_AUTO = "auto"
ARCHIVE_TYPE_IMPORT_SNAPSHOT = "import-snapshot"
ARCHIVE_TYPES = (ARCHIVE_TYPE_MANUAL, ARCHIVE_TYPE_AUTO, ARCHIVE_TYPE_IMPORT_SNAPSHOT)


def sanitize_for_key(value: str | None) -> str:
    if not value:
        return ""
    cleaned = re.sub(r"[^\w\-.]", "_", value)
    cleaned = re.sub(r"_{2,}", "_", cleaned)
    return cleaned.strip("_")


def archive_timestamp(now: datetime) -> str:
    return now.strftime("%Y-%m-%dT%H-%M-%S-%fZ")


def build_archive_key(
    archive_type: str,
    shipments: Iterable[Shipment],
    now: datetime,
    *,
    max_refs_length: int | None = None,
) -> str:
    timestamp = archive_timestamp(now)
    if archive_type == ARCHIVE_TYPE_AUTO:
        return f"auto_archive_arrived_{timestamp}.json"
    if archive_type == ARCHIVE_TYPE_IMPORT_SNAPSHOT:
        return f"shipments_{timestamp}.json"
    limit = max_refs_length if max_refs_length is not None else settings.ARCHIVE_KEY_REFS_MAX_LENGTH
    refs = "_".join(ref for ref in (sanitize_for_key(s.order_ref) for s in shipments) if ref)[:limit]
    refs = refs.strip("_")
    if not refs:
        return f"manual_archive_{timestamp}.json"
    return f"manual_archive_{refs}_{timestamp}.json"


def _json_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def snapshot_shipment(shipment: Shipment) -> dict:
    mapper = sa_inspect(Shipment)
    return {column.key: _json_value(getattr(shipment, column.key)) for column in mapper.column_attrs}


def find_eligible_for_auto_archive(
    shipments: Iterable[Shipment],
    threshold_days: int | None = None,
    *,
    now: datetime | None = None,
    statuses: Iterable[str] | None = None,
) -> list[Shipment]:
    now = now or datetime.utcnow()
    threshold_days = settings.AUTO_ARCHIVE_THRESHOLD_DAYS if threshold_days is None else threshold_days
    eligible_statuses = set(statuses or settings.AUTO_ARCHIVE_STATUSES)
    cutoff = now - timedelta(days=threshold_days)
    return [
        shipment
        for shipment in shipments
        if shipment.status in eligible_statuses and (shipment.updated_at or shipment.created_at) < cutoff
    ]


class ArchiveService:
    def __init__(self, db, telemetry: TelemetrySink | None = None):
        self.db = db
        self.repo = ArchiveRepository(db)
        self.shipments = ShipmentRepository(db)
        self.transitions = ShipmentTransitionService(db)
        self.telemetry = telemetry or NullTelemetrySink()

    def get(self, archive_key: str) -> ArchiveRecord:
        record = self.repo.get_by_key(archive_key)
        if record is None:
            raise AppError(ErrorCatalog.ARCHIVE_NOT_FOUND, details={"archive_key": archive_key})
        return record

    def list_archives(self, *, archive_type: str | None = None, limit: int | None = None) -> list[ArchiveRecord]:
        return self.repo.list_recent(archive_type=archive_type, limit=limit)

    def load_shipments(self, shipment_ids: list[str]) -> list[Shipment]:
        ordered_ids = list(dict.fromkeys(shipment_ids))
        found = {shipment.id: shipment for shipment in self.shipments.find_many(ids=ordered_ids)}
        missing = [shipment_id for shipment_id in ordered_ids if shipment_id not in found]
        if missing:
            raise AppError(ErrorCatalog.SHIPMENT_NOT_FOUND, details={"shipment_ids": missing})
        return [found[shipment_id] for shipment_id in ordered_ids]

    def archive(
        self,
        shipments: list[Shipment],
        archive_type: str = ARCHIVE_TYPE_MANUAL,
        reason: str | None = None,
        *,
        archive_key: str | None = None,
        now: datetime | None = None,
    ) -> ArchiveRecord:
        """Copy the shipments into one archive record and mark them archived.

        The record insert and every status change share one transaction. Passing
        an ``archive_key`` that already exists resumes that archive: shipments not
        yet archived are transitioned and the existing record is returned. Only
        shipments captured in that record's payload may be resumed.
        """
        if not shipments:
            raise AppError(ErrorCatalog.EMPTY_INPUT)
        if archive_type not in ARCHIVE_TYPES:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"archive_type": archive_type, "allowed": list(ARCHIVE_TYPES)},
            )
        now = now or datetime.utcnow()
        key = archive_key or build_archive_key(archive_type, shipments, now)

        try:
            record = self.repo.get_by_key(key)
            if record is None:
                record = self.repo.insert(
                    ArchiveRecord(
                        file_name=key,
                        archive_type=archive_type,
                        reason=reason,
                        total_shipments=len(shipments),
                        payload=[snapshot_shipment(shipment) for shipment in shipments],
                        archived_at=now,
                    )
                )
                resumed = False
            else:
                resumed = True
                archived_ids = {row.get("id") for row in record.payload or []}
                outside = [shipment.id for shipment in shipments if shipment.id not in archived_ids]
                if outside:
                    raise AppError(
                        ErrorCatalog.VALIDATION_ERROR,
                        details={"archive_key": key, "shipment_ids_not_in_archive": outside},
                    )
            for shipment in shipments:
                if shipment.status == ShipmentStatus.ARCHIVED.value and shipment.archived_at is not None:
                    continue
                self.transitions.apply(shipment, ShipmentStatus.ARCHIVED, now=now)
            self.db.commit()
        except Exception as exc:
            self.db.rollback()
            self.telemetry.record(
                TelemetryEvent(
                    name="archive_failed",
                    severity="error",
                    attributes={
                        "archive_key": key,
                        "archive_type": archive_type,
                        "shipments": len(shipments),
                        "error_class": exc.__class__.__name__,
                    },
                )
            )
            raise
        self.db.refresh(record)
        if not resumed:
            metrics.increment_archived(archive_type, record.total_shipments)
        log_json(
            logger,
            {
                "event": "archive_created" if not resumed else "archive_resumed",
                "archive_key": record.file_name,
                "archive_type": archive_type,
                "total_shipments": record.total_shipments,
                "reason": reason,
            },
        )
        return record

    def archive_by_ids(
        self,
        shipment_ids: list[str],
        archive_type: str = ARCHIVE_TYPE_MANUAL,
        reason: str | None = None,
        *,
        now: datetime | None = None,
    ) -> ArchiveRecord:
        if not shipment_ids:
            raise AppError(ErrorCatalog.EMPTY_INPUT)
        return self.archive(self.load_shipments(shipment_ids), archive_type, reason, now=now)

    def rename(self, archive_key: str, new_display_name: str, *, now: datetime | None = None) -> ArchiveRecord:
        record = self.get(archive_key)
        now = now or datetime.utcnow()
        sanitized = sanitize_for_key(new_display_name) or "archive"
        new_key = f"custom_archive_{sanitized}_{archive_timestamp(now)}.json"
        renamed = self.repo.rename(record, new_key=new_key, display_name=new_display_name)
        log_json(logger, {"event": "archive_renamed", "old_key": archive_key, "new_key": new_key})
        return renamed

    def auto_archive_stats(self, threshold_days: int | None = None, *, now: datetime | None = None) -> dict:
        now = now or datetime.utcnow()
        threshold_days = settings.AUTO_ARCHIVE_THRESHOLD_DAYS if threshold_days is None else threshold_days
        arrived = self.shipments.find_many(statuses=settings.AUTO_ARCHIVE_STATUSES)
        eligible = find_eligible_for_auto_archive(arrived, threshold_days, now=now)
        return {
            "threshold_days": threshold_days,
            "total_arrived": len(arrived),
            "eligible_for_archive": len(eligible),
            "eligible_shipments": [
                {
                    "id": shipment.id,
                    "supplier": shipment.supplier,
                    "order_ref": shipment.order_ref,
                    "arrived_date": shipment.updated_at,
                    "days_old": (now - shipment.updated_at).days,
                }
                for shipment in eligible
            ],
        }

    def run_auto_archive(self, threshold_days: int | None = None, *, now: datetime | None = None) -> JobSummary:
        now = now or datetime.utcnow()
        threshold_days = settings.AUTO_ARCHIVE_THRESHOLD_DAYS if threshold_days is None else threshold_days
        summary = JobSummary(job="auto-archive", details={"threshold_days": threshold_days})
        cutoff = now - timedelta(days=threshold_days)
        candidates = self.shipments.find_many(statuses=settings.AUTO_ARCHIVE_STATUSES, updated_before=cutoff)
        eligible = find_eligible_for_auto_archive(candidates, threshold_days, now=now)
        if not eligible:
            log_json(logger, {"event": "auto_archive_skipped", "threshold_days": threshold_days})
            return summary
        try:
            record = self.archive(eligible, ARCHIVE_TYPE_AUTO, f"Arrived more than {threshold_days} days ago", now=now)
        except Exception as exc:
            logger.exception("Auto-archive failed", extra={"shipments": len(eligible)})
            summary.failed = len(eligible)
            summary.details["error"] = exc.__class__.__name__
            return summary
        summary.processed = record.total_shipments
        summary.details["archive_key"] = record.file_name
        return summary
