from __future__ import annotations

from datetime import datetime

from sqlalchemy import select

from app.importflow.db.models import Shipment


class ShipmentRepository:
    def __init__(self, db):
        self.db = db

    def create(self, shipment: Shipment) -> Shipment:
        self.db.add(shipment)
        self.db.commit()
        self.db.refresh(shipment)
        return shipment

    def find_by_id(self, shipment_id: str) -> Shipment | None:
        return self.db.get(Shipment, shipment_id)

    def find_many(
        self,
        *,
        statuses: list[str] | set[str] | frozenset[str] | None = None,
        supplier: str | None = None,
        ids: list[str] | None = None,
        updated_before: datetime | None = None,
        include_archived: bool = True,
        limit: int | None = None,
    ) -> list[Shipment]:
        stmt = select(Shipment)
        if statuses:
            stmt = stmt.where(Shipment.status.in_(list(statuses)))
        if supplier:
            stmt = stmt.where(Shipment.supplier == supplier)
        if ids is not None:
            stmt = stmt.where(Shipment.id.in_(ids))
        if updated_before is not None:
            stmt = stmt.where(Shipment.updated_at < updated_before)
        if not include_archived:
            stmt = stmt.where(Shipment.archived_at.is_(None))
        stmt = stmt.order_by(Shipment.created_at, Shipment.id)
        if limit:
            stmt = stmt.limit(limit)
        return self.db.execute(stmt).scalars().all()

    def update_fields(self, shipment: Shipment, fields: dict) -> Shipment:
        """Stage field changes on a loaded shipment; the caller owns the commit."""
        for key, value in fields.items():
            setattr(shipment, key, value)
        self.db.add(shipment)
        self.db.flush()
        return shipment
