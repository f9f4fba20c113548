from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


_SHIPMENT_EXAMPLE = {
    "order_ref": "PO-2024-0117",
    "supplier": "Acme Packaging",
    "status": "in_transit_seaway",
    "expected_arrival_at": "2024-05-20T08:00:00",
    "product_name": "Corrugated boxes",
    "quantity": 1200,
    "pallet_qty": 24,
    "receiving_warehouse": "PRETORIA",
}


class ShipmentCreateRequest(BaseModel):
    order_ref: str = Field(..., min_length=1, max_length=255)
    supplier: str = Field(..., min_length=1, max_length=255)
    status: str = "planned_seafreight"
    expected_arrival_at: datetime | None = None
    product_name: str | None = None
    quantity: int | None = Field(default=None, ge=0)
    pallet_qty: float | None = Field(default=None, ge=0)
    week_number: int | None = Field(default=None, ge=1, le=53)
    final_pod: str | None = None
    receiving_warehouse: str | None = None
    notes: str | None = None

    model_config = {"extra": "forbid", "json_schema_extra": {"example": _SHIPMENT_EXAMPLE}}

    @field_validator("expected_arrival_at")
    @classmethod
    def to_naive_utc(cls, value: datetime | None) -> datetime | None:
        # Stored timestamps are naive UTC.
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)


class ShipmentResponse(BaseModel):
    id: str
    order_ref: str
    supplier: str
    status: str
    expected_arrival_at: datetime | None
    product_name: str | None
    quantity: int | None
    pallet_qty: float | None
    week_number: int | None
    final_pod: str | None
    receiving_warehouse: str | None
    notes: str | None
    inspection_status: str
    inspection_notes: str | None
    inspected_by: str | None
    inspection_date: datetime | None
    rejection_reason: str | None
    receiving_status: str
    receiving_notes: str | None
    received_by: str | None
    receiving_date: datetime | None
    received_quantity: int | None
    unloading_start_date: datetime | None
    unloading_completed_date: datetime | None
    created_at: datetime
    updated_at: datetime
    archived_at: datetime | None

    model_config = {"from_attributes": True}


class ShipmentListResponse(BaseModel):
    rows: list[ShipmentResponse]
    total: int


class TransitionMetadata(BaseModel):
    notes: str | None = None
    rejection_reason: str | None = None
    inspected_by: str | None = None
    inspection_notes: str | None = None
    received_by: str | None = None
    receiving_notes: str | None = None
    received_quantity: int | None = Field(default=None, ge=0)

    model_config = {"extra": "forbid"}


class TransitionRequest(BaseModel):
    status: str = Field(..., min_length=1)
    metadata: TransitionMetadata | None = None


class StartInspectionRequest(BaseModel):
    inspected_by: str | None = None


class CompleteInspectionRequest(BaseModel):
    passed: bool
    notes: str | None = None
    inspected_by: str | None = None


class RejectShipmentRequest(BaseModel):
    reason: str = Field(..., min_length=1)
    inspected_by: str | None = None


class StartReceivingRequest(BaseModel):
    received_by: str | None = None


class CompleteReceivingRequest(BaseModel):
    received_quantity: int | None = Field(default=None, ge=0)
    notes: str | None = None
    received_by: str | None = None
    discrepancies: list[str] = Field(default_factory=list)
