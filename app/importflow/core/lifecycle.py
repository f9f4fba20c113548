from __future__ import annotations

from enum import Enum


class ShipmentStatus(str, Enum):
    PLANNED_AIRFREIGHT = "planned_airfreight"
    PLANNED_SEAFREIGHT = "planned_seafreight"
    IN_TRANSIT_AIRFREIGHT = "in_transit_airfreight"
    IN_TRANSIT_ROADWAY = "in_transit_roadway"
    IN_TRANSIT_SEAWAY = "in_transit_seaway"
    MOORED = "moored"
    BERTH_WORKING = "berth_working"
    BERTH_COMPLETE = "berth_complete"
    ARRIVED_PTA = "arrived_pta"
    ARRIVED_KLM = "arrived_klm"
    ARRIVED_OFFSITE = "arrived_offsite"
    UNLOADING = "unloading"
    INSPECTION_PENDING = "inspection_pending"
    INSPECTING = "inspecting"
    INSPECTION_PASSED = "inspection_passed"
    INSPECTION_FAILED = "inspection_failed"
    RECEIVING = "receiving"
    RECEIVED = "received"
    STORED = "stored"
    DELAYED = "delayed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


STATUS_VALUES = frozenset(status.value for status in ShipmentStatus)

# "delayed" overlays the pre-arrival stages, so it counts as one of them.
PRE_ARRIVAL_STATUSES = frozenset(
    {
        ShipmentStatus.PLANNED_AIRFREIGHT.value,
        ShipmentStatus.PLANNED_SEAFREIGHT.value,
        ShipmentStatus.IN_TRANSIT_AIRFREIGHT.value,
        ShipmentStatus.IN_TRANSIT_ROADWAY.value,
        ShipmentStatus.IN_TRANSIT_SEAWAY.value,
        ShipmentStatus.MOORED.value,
        ShipmentStatus.BERTH_WORKING.value,
        ShipmentStatus.BERTH_COMPLETE.value,
        ShipmentStatus.DELAYED.value,
    }
)

ARRIVED_STATUSES = frozenset(
    {
        ShipmentStatus.ARRIVED_PTA.value,
        ShipmentStatus.ARRIVED_KLM.value,
        ShipmentStatus.ARRIVED_OFFSITE.value,
    }
)

POST_ARRIVAL_STATUSES = frozenset(
    {
        ShipmentStatus.UNLOADING.value,
        ShipmentStatus.INSPECTION_PENDING.value,
        ShipmentStatus.INSPECTING.value,
        ShipmentStatus.INSPECTION_PASSED.value,
        ShipmentStatus.INSPECTION_FAILED.value,
        ShipmentStatus.RECEIVING.value,
        ShipmentStatus.RECEIVED.value,
        ShipmentStatus.STORED.value,
    }
)

TERMINAL_STATUSES = frozenset({ShipmentStatus.CANCELLED.value, ShipmentStatus.ARCHIVED.value})


def is_known_status(value: str | None) -> bool:
    return value in STATUS_VALUES


def is_pre_arrival(value: str | None) -> bool:
    return value in PRE_ARRIVAL_STATUSES


def is_arrived(value: str | None) -> bool:
    return value in ARRIVED_STATUSES
