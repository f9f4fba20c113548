from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.importflow.core.deps import get_email_transport, get_telemetry
from app.importflow.db.models import Shipment
from app.importflow.db.session import get_db
from app.importflow.schemas.shipments import (
    CompleteInspectionRequest,
    CompleteReceivingRequest,
    RejectShipmentRequest,
    ShipmentCreateRequest,
    ShipmentListResponse,
    ShipmentResponse,
    StartInspectionRequest,
    StartReceivingRequest,
    TransitionRequest,
)
from app.importflow.services.notifications import NotificationService
from app.importflow.services.shipments import ShipmentService
from app.importflow.services.transitions import ShipmentTransitionService

router = APIRouter()


def _response(shipment: Shipment) -> ShipmentResponse:
    return ShipmentResponse.model_validate(shipment)


def _notify(db, transport, telemetry, shipment: Shipment, previous_status: str) -> None:
    NotificationService(db, transport, telemetry).publish_status_change(shipment, previous_status)


def _run_action(db, transport, telemetry, shipment_id: str, action) -> ShipmentResponse:
    transitions = ShipmentTransitionService(db)
    previous_status = transitions.get(shipment_id).status
    shipment = action(transitions)
    _notify(db, transport, telemetry, shipment, previous_status)
    return _response(shipment)


@router.post("/importflow/shipments", response_model=ShipmentResponse, status_code=201)
def create_shipment(payload: ShipmentCreateRequest, db=Depends(get_db)):
    shipment = ShipmentService(db).create_shipment(payload.model_dump())
    return _response(shipment)


@router.get("/importflow/shipments", response_model=ShipmentListResponse)
def list_shipments(
    status: list[str] | None = Query(default=None),
    supplier: str | None = None,
    include_archived: bool = True,
    limit: int | None = Query(default=None, ge=1, le=1000),
    db=Depends(get_db),
):
    rows = ShipmentService(db).list_shipments(
        statuses=status,
        supplier=supplier,
        include_archived=include_archived,
        limit=limit,
    )
    return ShipmentListResponse(rows=[_response(row) for row in rows], total=len(rows))


@router.get("/importflow/shipments/{shipment_id}", response_model=ShipmentResponse)
def get_shipment(shipment_id: str, db=Depends(get_db)):
    return _response(ShipmentTransitionService(db).get(shipment_id))


@router.post("/importflow/shipments/{shipment_id}/transition", response_model=ShipmentResponse)
def transition_shipment(
    shipment_id: str,
    payload: TransitionRequest,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    metadata = payload.metadata.model_dump(exclude_unset=True) if payload.metadata else None
    return _run_action(
        db,
        transport,
        telemetry,
        shipment_id,
        lambda transitions: transitions.transition(shipment_id, payload.status, metadata),
    )


@router.post("/importflow/shipments/{shipment_id}/start-unloading", response_model=ShipmentResponse)
def start_unloading(
    shipment_id: str,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    return _run_action(db, transport, telemetry, shipment_id, lambda t: t.start_unloading(shipment_id))


@router.post("/importflow/shipments/{shipment_id}/complete-unloading", response_model=ShipmentResponse)
def complete_unloading(
    shipment_id: str,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    return _run_action(db, transport, telemetry, shipment_id, lambda t: t.complete_unloading(shipment_id))


@router.post("/importflow/shipments/{shipment_id}/start-inspection", response_model=ShipmentResponse)
def start_inspection(
    shipment_id: str,
    payload: StartInspectionRequest | None = None,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    inspected_by = payload.inspected_by if payload else None
    return _run_action(
        db,
        transport,
        telemetry,
        shipment_id,
        lambda t: t.start_inspection(shipment_id, inspected_by),
    )


@router.post("/importflow/shipments/{shipment_id}/complete-inspection", response_model=ShipmentResponse)
def complete_inspection(
    shipment_id: str,
    payload: CompleteInspectionRequest,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    return _run_action(
        db,
        transport,
        telemetry,
        shipment_id,
        lambda t: t.complete_inspection(shipment_id, payload.passed, payload.notes, payload.inspected_by),
    )


@router.post("/importflow/shipments/{shipment_id}/reject", response_model=ShipmentResponse)
def reject_shipment(
    shipment_id: str,
    payload: RejectShipmentRequest,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    return _run_action(
        db,
        transport,
        telemetry,
        shipment_id,
        lambda t: t.reject_shipment(shipment_id, payload.reason, payload.inspected_by),
    )


@router.post("/importflow/shipments/{shipment_id}/start-receiving", response_model=ShipmentResponse)
def start_receiving(
    shipment_id: str,
    payload: StartReceivingRequest | None = None,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    received_by = payload.received_by if payload else None
    return _run_action(
        db,
        transport,
        telemetry,
        shipment_id,
        lambda t: t.start_receiving(shipment_id, received_by),
    )


@router.post("/importflow/shipments/{shipment_id}/complete-receiving", response_model=ShipmentResponse)
def complete_receiving(
    shipment_id: str,
    payload: CompleteReceivingRequest,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    return _run_action(
        db,
        transport,
        telemetry,
        shipment_id,
        lambda t: t.complete_receiving(
            shipment_id,
            payload.received_quantity,
            payload.notes,
            payload.received_by,
            payload.discrepancies,
        ),
    )


@router.post("/importflow/shipments/{shipment_id}/mark-stored", response_model=ShipmentResponse)
def mark_stored(
    shipment_id: str,
    db=Depends(get_db),
    transport=Depends(get_email_transport),
    telemetry=Depends(get_telemetry),
):
    return _run_action(db, transport, telemetry, shipment_id, lambda t: t.mark_as_stored(shipment_id))
