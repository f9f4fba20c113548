from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

EmailFrequency = Literal["immediate", "daily", "weekly"]
EventType = Literal[
    "shipment_arrival",
    "inspection_failed",
    "inspection_passed",
    "warehouse_capacity",
    "delayed_shipment",
    "post_arrival_update",
    "workflow_assigned",
]


class NotificationPreferenceResponse(BaseModel):
    user_id: str
    notify_arrival: bool
    notify_inspection_failed: bool
    notify_inspection_passed: bool
    notify_capacity_warning: bool
    notify_delayed: bool
    notify_post_arrival_update: bool
    notify_workflow_assigned: bool
    email_enabled: bool
    email_frequency: EmailFrequency
    email_address: str | None

    model_config = {"from_attributes": True}


class NotificationPreferenceUpdateRequest(BaseModel):
    notify_arrival: bool | None = None
    notify_inspection_failed: bool | None = None
    notify_inspection_passed: bool | None = None
    notify_capacity_warning: bool | None = None
    notify_delayed: bool | None = None
    notify_post_arrival_update: bool | None = None
    notify_workflow_assigned: bool | None = None
    email_enabled: bool | None = None
    email_frequency: EmailFrequency | None = None
    email_address: str | None = Field(default=None, max_length=255)

    model_config = {"extra": "forbid"}


class NotificationLogResponse(BaseModel):
    id: int
    event_type: str
    shipment_id: str | None
    subject: str
    status: str
    delivery_method: str
    error_message: str | None
    sent_at: datetime

    model_config = {"from_attributes": True}


class NotificationHistoryResponse(BaseModel):
    rows: list[NotificationLogResponse]
    total: int


class NotificationStatsResponse(BaseModel):
    user_id: str
    total: int
    sent: int
    failed: int


class NotificationEventRequest(BaseModel):
    event_type: EventType
    shipment_id: str | None = None
    event_data: dict = Field(default_factory=dict)


class NotificationEventResponse(BaseModel):
    event_type: str
    recipients: int
    queued: int
    sent: int
    failed: int
