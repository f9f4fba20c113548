from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.importflow.db.session import get_db
from app.importflow.repos.shipments import ShipmentRepository
from app.importflow.schemas.alerts import AlertListResponse, AlertResponse
from app.importflow.services.alerts import apply_read_state, compute_alerts

router = APIRouter()


@router.get("/importflow/alerts", response_model=AlertListResponse)
def list_alerts(
    capacity_percent: float | None = Query(default=None, ge=0),
    warehouse: str = "main",
    read: list[str] | None = Query(default=None),
    db=Depends(get_db),
):
    shipments = ShipmentRepository(db).find_many(include_archived=False)
    capacity = {warehouse: capacity_percent} if capacity_percent is not None else None
    alerts = apply_read_state(compute_alerts(shipments, capacity=capacity), read or [])
    rows = [
        AlertResponse(
            id=alert.id,
            rule=alert.rule,
            category=alert.category,
            severity=alert.severity,
            title=alert.title,
            description=alert.description,
            shipment_id=alert.shipment_id,
            meta=alert.meta,
            read=is_read,
        )
        for alert, is_read in alerts
    ]
    return AlertListResponse(rows=rows, total=len(rows))
