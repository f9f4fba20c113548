"""Alert computation over a snapshot of shipments.

``compute_alerts`` reads nothing but its arguments and writes nothing. Each rule
yields at most one alert per shipment, and an alert's id is derived from the
shipment id and the rule name only, so callers can carry a read/unread flag
across recomputations by id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Mapping

from app.importflow.core.config import settings
from app.importflow.core.lifecycle import ShipmentStatus, is_pre_arrival
from app.importflow.db.models import Shipment

SEVERITY_HIGH = "high"
SEVERITY_MEDIUM = "medium"

RULE_DELAYED = "delayed"
RULE_INSPECTION_FAILED = "inspection_failed"
RULE_INSPECTION_STUCK = "inspection_stuck"
RULE_CAPACITY = "capacity_warning"

_SEVERITY_ORDER = {SEVERITY_HIGH: 0, SEVERITY_MEDIUM: 1}


@dataclass(frozen=True)
class Alert:
    id: str
    rule: str
    category: str
    severity: str
    title: str
    description: str
    shipment_id: str | None = None
    meta: dict = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class AlertThresholds:
    inspection_stuck_days: int = 3
    capacity_warning_percent: float = 85.0

    @classmethod
    def from_settings(cls) -> "AlertThresholds":
        return cls(
            inspection_stuck_days=settings.INSPECTION_STUCK_DAYS,
            capacity_warning_percent=settings.CAPACITY_WARNING_PERCENT,
        )


def alert_id(subject_id: str, rule: str) -> str:
    return f"{subject_id}:{rule}"


def _label(shipment: Shipment) -> str:
    return shipment.product_name or shipment.order_ref


def _meta(shipment: Shipment) -> dict:
    return {
        "supplier": shipment.supplier,
        "order_ref": shipment.order_ref,
        "status": shipment.status,
        "product_name": shipment.product_name,
        "receiving_warehouse": shipment.receiving_warehouse,
    }


def is_delayed(shipment: Shipment, now: datetime) -> bool:
    if shipment.status == ShipmentStatus.DELAYED.value:
        return True
    if not is_pre_arrival(shipment.status):
        return False
    return shipment.expected_arrival_at is not None and now > shipment.expected_arrival_at


def _delayed_alert(shipment: Shipment, now: datetime) -> Alert | None:
    if not is_delayed(shipment, now):
        return None
    meta = _meta(shipment)
    if shipment.expected_arrival_at is not None:
        meta["expected_arrival_at"] = shipment.expected_arrival_at.isoformat()
        meta["days_overdue"] = max((now - shipment.expected_arrival_at).days, 0)
    return Alert(
        id=alert_id(shipment.id, RULE_DELAYED),
        rule=RULE_DELAYED,
        category="delayed",
        severity=SEVERITY_HIGH,
        title="Delayed Shipment",
        description=f"{shipment.supplier} - {_label(shipment)} is delayed and requires attention.",
        shipment_id=shipment.id,
        meta=meta,
    )


def _inspection_failed_alert(shipment: Shipment) -> Alert | None:
    if shipment.status != ShipmentStatus.INSPECTION_FAILED.value:
        return None
    meta = _meta(shipment)
    if shipment.rejection_reason:
        meta["rejection_reason"] = shipment.rejection_reason
    return Alert(
        id=alert_id(shipment.id, RULE_INSPECTION_FAILED),
        rule=RULE_INSPECTION_FAILED,
        category="inspection_failed",
        severity=SEVERITY_HIGH,
        title="Inspection Failed",
        description=f"{_label(shipment)} failed inspection and needs review.",
        shipment_id=shipment.id,
        meta=meta,
    )


def _inspection_stuck_alert(shipment: Shipment, now: datetime, thresholds: AlertThresholds) -> Alert | None:
    if shipment.status != ShipmentStatus.INSPECTING.value or shipment.updated_at is None:
        return None
    if now - shipment.updated_at <= timedelta(days=thresholds.inspection_stuck_days):
        return None
    meta = _meta(shipment)
    meta["days_in_inspection"] = (now - shipment.updated_at).days
    return Alert(
        id=alert_id(shipment.id, RULE_INSPECTION_STUCK),
        rule=RULE_INSPECTION_STUCK,
        category="inspection_stuck",
        severity=SEVERITY_MEDIUM,
        title="Inspection Taking Too Long",
        description=(
            f"{_label(shipment)} has been in inspection for more than "
            f"{thresholds.inspection_stuck_days} days."
        ),
        shipment_id=shipment.id,
        meta=meta,
    )


def _capacity_alerts(capacity: Mapping[str, float], thresholds: AlertThresholds) -> list[Alert]:
    alerts = []
    for warehouse, percent in capacity.items():
        if percent is None or percent < thresholds.capacity_warning_percent:
            continue
        alerts.append(
            Alert(
                id=alert_id(f"warehouse-{warehouse}", RULE_CAPACITY),
                rule=RULE_CAPACITY,
                category="capacity_warning",
                severity=SEVERITY_MEDIUM,
                title="Warehouse Capacity Warning",
                description=f"{warehouse} is at {percent:.1f}% capacity.",
                meta={"warehouse": warehouse, "capacity_percent": percent},
            )
        )
    return alerts


def compute_alerts(
    shipments: Iterable[Shipment],
    *,
    now: datetime | None = None,
    capacity: Mapping[str, float] | None = None,
    thresholds: AlertThresholds | None = None,
) -> list[Alert]:
    now = now or datetime.utcnow()
    thresholds = thresholds or AlertThresholds.from_settings()
    by_id: dict[str, Alert] = {}
    for shipment in shipments:
        for alert in (
            _delayed_alert(shipment, now),
            _inspection_failed_alert(shipment),
            _inspection_stuck_alert(shipment, now, thresholds),
        ):
            if alert is not None:
                by_id[alert.id] = alert
    for alert in _capacity_alerts(capacity or {}, thresholds):
        by_id[alert.id] = alert
    return sorted(by_id.values(), key=lambda alert: (_SEVERITY_ORDER[alert.severity], alert.id))


def apply_read_state(alerts: Iterable[Alert], read_ids: Iterable[str]) -> list[tuple[Alert, bool]]:
    read = set(read_ids)
    return [(alert, alert.id in read) for alert in alerts]
