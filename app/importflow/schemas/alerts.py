from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class AlertResponse(BaseModel):
    id: str
    rule: str
    category: str
    severity: Literal["high", "medium"]
    title: str
    description: str
    shipment_id: str | None = None
    meta: dict
    read: bool = False


class AlertListResponse(BaseModel):
    rows: list[AlertResponse]
    total: int
