from __future__ import annotations

from datetime import datetime, timezone

from app.importflow.core.lifecycle import ShipmentStatus
from app.importflow.db.models import Shipment
from app.importflow.repos.shipments import ShipmentRepository
from app.importflow.services.transitions import normalize_status


class ShipmentService:
    def __init__(self, db):
        self.db = db
        self.repo = ShipmentRepository(db)

    def create_shipment(self, fields: dict, *, now: datetime | None = None) -> Shipment:
        now = now or datetime.utcnow()
        values = dict(fields)
        status = normalize_status(values.pop("status", ShipmentStatus.PLANNED_SEAFREIGHT.value))
        expected = values.get("expected_arrival_at")
        if expected is not None and expected.tzinfo is not None:
            values["expected_arrival_at"] = expected.astimezone(timezone.utc).replace(tzinfo=None)
        shipment = Shipment(
            **values,
            status=status,
            created_at=now,
            updated_at=now,
            archived_at=now if status == ShipmentStatus.ARCHIVED.value else None,
        )
        return self.repo.create(shipment)

    def list_shipments(
        self,
        *,
        statuses: list[str] | None = None,
        supplier: str | None = None,
        include_archived: bool = True,
        limit: int | None = None,
    ) -> list[Shipment]:
        if statuses:
            statuses = [normalize_status(status) for status in statuses]
        return self.repo.find_many(
            statuses=statuses,
            supplier=supplier,
            include_archived=include_archived,
            limit=limit,
        )
