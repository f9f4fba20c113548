"""Shipment status transitions.

The engine accepts any recognized lifecycle stage as a target. It does not
enforce sequencing between stages and does not reject regressions; callers
order the workflow actions themselves. Every change is a single update of the
shipment row that moves ``status`` and ``updated_at`` together and keeps
``archived_at`` set exactly when the status is ``archived``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from app.importflow.core.error_catalog import AppError, ErrorCatalog
from app.importflow.core.lifecycle import STATUS_VALUES, ShipmentStatus, is_known_status
from app.importflow.core.metrics import metrics
from app.importflow.db.models import Shipment
from app.importflow.repos.shipments import ShipmentRepository

logger = logging.getLogger(__name__)

TRANSITION_METADATA_FIELDS = frozenset(
    {
        "notes",
        "rejection_reason",
        "inspected_by",
        "inspection_notes",
        "received_by",
        "receiving_notes",
        "received_quantity",
    }
)


def normalize_status(target_status: ShipmentStatus | str) -> str:
    value = target_status.value if isinstance(target_status, ShipmentStatus) else target_status
    if not is_known_status(value):
        raise AppError(
            ErrorCatalog.INVALID_STATE,
            details={"status": value, "allowed": sorted(STATUS_VALUES)},
        )
    return value


def next_updated_at(previous: datetime | None, now: datetime) -> datetime:
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class ShipmentTransitionService:
    def __init__(self, db):
        self.db = db
        self.repo = ShipmentRepository(db)

    def get(self, shipment_id: str) -> Shipment:
        shipment = self.repo.find_by_id(shipment_id)
        if shipment is None:
            raise AppError(ErrorCatalog.SHIPMENT_NOT_FOUND, details={"shipment_id": shipment_id})
        return shipment

    def apply(
        self,
        shipment: Shipment,
        target_status: ShipmentStatus | str,
        metadata: dict | None = None,
        *,
        now: datetime | None = None,
    ) -> Shipment:
        """Stage a transition on a loaded shipment without committing.

        Used directly by multi-step operations (archiving) that commit several
        shipments in one unit of work.
        """
        status = normalize_status(target_status)
        fields = dict(metadata or {})
        unknown = sorted(set(fields) - TRANSITION_METADATA_FIELDS)
        if unknown:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"unknown_metadata": unknown})
        return self._stage(shipment, status, fields, now=now)

    def transition(
        self,
        shipment_id: str,
        target_status: ShipmentStatus | str,
        metadata: dict | None = None,
        *,
        now: datetime | None = None,
    ) -> Shipment:
        status = normalize_status(target_status)
        shipment = self.get(shipment_id)
        previous = shipment.status
        self.apply(shipment, status, metadata, now=now)
        return self._commit(shipment, previous)

    def start_unloading(self, shipment_id: str, *, now: datetime | None = None) -> Shipment:
        now = now or datetime.utcnow()
        return self._action(
            shipment_id,
            ShipmentStatus.UNLOADING.value,
            {"unloading_start_date": now},
            now=now,
        )

    def complete_unloading(self, shipment_id: str, *, now: datetime | None = None) -> Shipment:
        now = now or datetime.utcnow()
        return self._action(
            shipment_id,
            ShipmentStatus.INSPECTION_PENDING.value,
            {"unloading_completed_date": now},
            now=now,
        )

    def start_inspection(
        self,
        shipment_id: str,
        inspected_by: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Shipment:
        now = now or datetime.utcnow()
        return self._action(
            shipment_id,
            ShipmentStatus.INSPECTING.value,
            {
                "inspection_status": "in_progress",
                "inspected_by": inspected_by,
                "inspection_date": now,
            },
            now=now,
        )

    def complete_inspection(
        self,
        shipment_id: str,
        passed: bool,
        notes: str | None = None,
        inspected_by: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Shipment:
        target = ShipmentStatus.INSPECTION_PASSED if passed else ShipmentStatus.INSPECTION_FAILED
        fields: dict = {"inspection_status": "passed" if passed else "failed", "inspection_notes": notes}
        if inspected_by:
            fields["inspected_by"] = inspected_by
        return self._action(shipment_id, target.value, fields, now=now)

    def reject_shipment(
        self,
        shipment_id: str,
        reason: str,
        inspected_by: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Shipment:
        fields: dict = {"inspection_status": "failed", "rejection_reason": reason}
        if inspected_by:
            fields["inspected_by"] = inspected_by
        return self._action(shipment_id, ShipmentStatus.INSPECTION_FAILED.value, fields, now=now)

    def start_receiving(
        self,
        shipment_id: str,
        received_by: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Shipment:
        now = now or datetime.utcnow()
        return self._action(
            shipment_id,
            ShipmentStatus.RECEIVING.value,
            {"receiving_status": "in_progress", "received_by": received_by, "receiving_date": now},
            now=now,
        )

    def complete_receiving(
        self,
        shipment_id: str,
        received_quantity: int | None = None,
        notes: str | None = None,
        received_by: str | None = None,
        discrepancies: list[str] | None = None,
        *,
        now: datetime | None = None,
    ) -> Shipment:
        shipment = self.get(shipment_id)
        if discrepancies:
            receiving_status = "discrepancy"
            summary = "Discrepancies: " + "; ".join(discrepancies)
            notes = f"{notes}\n{summary}" if notes else summary
        elif received_quantity is not None and shipment.quantity is not None and received_quantity < shipment.quantity:
            receiving_status = "partial"
        else:
            receiving_status = "completed"
        fields: dict = {
            "receiving_status": receiving_status,
            "received_quantity": received_quantity,
            "receiving_notes": notes,
        }
        if received_by:
            fields["received_by"] = received_by
        previous = shipment.status
        self._stage(shipment, ShipmentStatus.RECEIVED.value, fields, now=now)
        return self._commit(shipment, previous)

    def mark_as_stored(self, shipment_id: str, *, now: datetime | None = None) -> Shipment:
        return self._action(shipment_id, ShipmentStatus.STORED.value, {}, now=now)

    def _action(self, shipment_id: str, status: str, fields: dict, *, now: datetime | None) -> Shipment:
        shipment = self.get(shipment_id)
        previous = shipment.status
        self._stage(shipment, status, fields, now=now)
        return self._commit(shipment, previous)

    def _stage(self, shipment: Shipment, status: str, fields: dict, *, now: datetime | None) -> Shipment:
        now = now or datetime.utcnow()
        updated_at = next_updated_at(shipment.updated_at, now)
        changes = dict(fields)
        changes["status"] = status
        changes["updated_at"] = updated_at
        changes["archived_at"] = updated_at if status == ShipmentStatus.ARCHIVED.value else None
        return self.repo.update_fields(shipment, changes)

    def _commit(self, shipment: Shipment, previous_status: str) -> Shipment:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(shipment)
        metrics.increment_transition(shipment.status)
        logger.info(
            "Shipment status changed",
            extra={
                "shipment_id": shipment.id,
                "from_status": previous_status,
                "to_status": shipment.status,
            },
        )
        return shipment
