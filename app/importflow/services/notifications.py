from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from app.importflow.core.config import settings
from app.importflow.core.error_catalog import AppError, ErrorCatalog
from app.importflow.core.job_summary import JobSummary
from app.importflow.core.lifecycle import ARRIVED_STATUSES, PRE_ARRIVAL_STATUSES, ShipmentStatus
from app.importflow.core.logging import log_json
from app.importflow.core.telemetry import NullTelemetrySink, TelemetryEvent, TelemetrySink
from app.importflow.db.models import NotificationLog, NotificationPreference, Shipment, User
from app.importflow.repos.digest_queue import DigestQueueRepository
from app.importflow.repos.notification_log import NotificationLogRepository
from app.importflow.repos.shipments import ShipmentRepository
from app.importflow.repos.users import UserRepository
from app.importflow.services.alerts import RULE_DELAYED, compute_alerts
from app.importflow.services.digest import DigestService
from app.importflow.services.email_templates import render_event_email
from app.importflow.services.email_transport import EmailTransport
from app.importflow.services.preferences import (
    EVENT_CATEGORY_FLAGS,
    FREQUENCY_IMMEDIATE,
    PreferenceService,
    wants_event,
)

logger = logging.getLogger(__name__)

EVENT_DELAYED = "delayed_shipment"

_POST_ARRIVAL_UPDATES = frozenset(
    {
        ShipmentStatus.UNLOADING.value,
        ShipmentStatus.INSPECTION_PENDING.value,
        ShipmentStatus.INSPECTING.value,
        ShipmentStatus.RECEIVING.value,
        ShipmentStatus.RECEIVED.value,
        ShipmentStatus.STORED.value,
    }
)


def event_type_for_status(status: str) -> str | None:
    if status in ARRIVED_STATUSES:
        return "shipment_arrival"
    if status == ShipmentStatus.INSPECTION_FAILED.value:
        return "inspection_failed"
    if status == ShipmentStatus.INSPECTION_PASSED.value:
        return "inspection_passed"
    if status == ShipmentStatus.DELAYED.value:
        return EVENT_DELAYED
    if status in _POST_ARRIVAL_UPDATES:
        return "post_arrival_update"
    return None


@dataclass
class PublishResult:
    event_type: str
    recipients: int = 0
    queued: int = 0
    sent: int = 0
    failed: int = 0
    errors: list[dict] = field(default_factory=list)


class NotificationService:
    def __init__(self, db, transport: EmailTransport, telemetry: TelemetrySink | None = None):
        self.db = db
        self.transport = transport
        self.telemetry = telemetry or NullTelemetrySink()
        self.digest = DigestService(db, transport, self.telemetry)
        self.preferences = PreferenceService(db)
        self.users = UserRepository(db)
        self.shipments = ShipmentRepository(db)
        self.log = NotificationLogRepository(db)
        self.queue = DigestQueueRepository(db)

    def publish(
        self,
        event_type: str,
        event_data: dict | None = None,
        shipment_id: str | None = None,
        *,
        now: datetime | None = None,
    ) -> PublishResult:
        if event_type not in EVENT_CATEGORY_FLAGS:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"event_type": event_type, "allowed": sorted(EVENT_CATEGORY_FLAGS)},
            )
        now = now or datetime.utcnow()
        shipment = self.shipments.find_by_id(shipment_id) if shipment_id else None
        if shipment_id and shipment is None:
            raise AppError(ErrorCatalog.SHIPMENT_NOT_FOUND, details={"shipment_id": shipment_id})

        result = PublishResult(event_type=event_type)
        for user in self.users.list_active():
            preference = self.preferences.resolve(user.id)
            if not wants_event(preference, event_type):
                continue
            result.recipients += 1
            try:
                self.digest.enqueue(user.id, event_type, event_data, shipment_id, now=now)
                result.queued += 1
                if preference.email_frequency == FREQUENCY_IMMEDIATE:
                    if self._send_immediate(user, preference, event_type, event_data, shipment, now=now):
                        result.sent += 1
                    else:
                        result.failed += 1
            except Exception as exc:
                self.db.rollback()
                logger.exception("Notification delivery crashed", extra={"user_id": user.id, "event_type": event_type})
                self.telemetry.record(
                    TelemetryEvent(
                        name="notification_publish_error",
                        severity="error",
                        attributes={"user_id": user.id, "event_type": event_type, "error_class": exc.__class__.__name__},
                    )
                )
                result.failed += 1
                result.errors.append({"user_id": user.id, "error": exc.__class__.__name__})

        log_json(
            logger,
            {
                "event": "notification_published",
                "event_type": event_type,
                "shipment_id": shipment_id,
                "recipients": result.recipients,
                "queued": result.queued,
                "sent": result.sent,
                "failed": result.failed,
            },
        )
        return result

    def _send_immediate(
        self,
        user: User,
        preference: NotificationPreference,
        event_type: str,
        event_data: dict | None,
        shipment: Shipment | None,
        *,
        now: datetime,
    ) -> bool:
        address = preference.email_address or user.email
        if not address:
            return False
        email = render_event_email(event_type, event_data, shipment)
        sent = self.transport.send(address, email.subject, email.html, email.text)
        self.log.create(
            NotificationLog(
                user_id=user.id,
                event_type=event_type,
                shipment_id=shipment.id if shipment is not None else None,
                subject=email.subject,
                message=email.html,
                status="sent" if sent.success else "failed",
                error_message=sent.error,
                sent_at=now,
            )
        )
        if not sent.success:
            self.telemetry.record(
                TelemetryEvent(
                    name="notification_send_failed",
                    severity="warning",
                    attributes={"user_id": user.id, "event_type": event_type},
                )
            )
        return sent.success

    def publish_status_change(
        self,
        shipment: Shipment,
        previous_status: str | None,
        *,
        now: datetime | None = None,
    ) -> PublishResult | None:
        if shipment.status == previous_status:
            return None
        event_type = event_type_for_status(shipment.status)
        if event_type is None:
            return None
        event_data = {
            "order_ref": shipment.order_ref,
            "supplier": shipment.supplier,
            "status": shipment.status,
            "previous_status": previous_status,
        }
        if shipment.rejection_reason and event_type == "inspection_failed":
            event_data["rejection_reason"] = shipment.rejection_reason
        return self.publish(event_type, event_data, shipment.id, now=now)

    def check_delayed_shipments(self, *, now: datetime | None = None) -> JobSummary:
        """Announce delayed shipments that were not announced within the cooldown window."""
        now = now or datetime.utcnow()
        since = now - timedelta(hours=settings.DELAYED_NOTIFICATION_COOLDOWN_HOURS)
        candidates = self.shipments.find_many(statuses=PRE_ARRIVAL_STATUSES)
        delayed = [alert for alert in compute_alerts(candidates, now=now) if alert.rule == RULE_DELAYED]
        summary = JobSummary(job="delayed-check", details={"delayed": len(delayed), "already_notified": 0})
        for alert in delayed:
            if self._recently_announced(alert.shipment_id, since):
                summary.details["already_notified"] += 1
                continue
            try:
                self.publish(EVENT_DELAYED, dict(alert.meta), alert.shipment_id, now=now)
            except Exception as exc:
                self.db.rollback()
                logger.exception("Delayed notification failed", extra={"shipment_id": alert.shipment_id})
                summary.failed += 1
                summary.details.setdefault("errors", []).append(
                    {"shipment_id": alert.shipment_id, "error": exc.__class__.__name__}
                )
                continue
            summary.processed += 1
        log_json(logger, {"event": "delayed_check_completed", **summary.to_dict()})
        return summary

    def _recently_announced(self, shipment_id: str, since: datetime) -> bool:
        if self.log.exists_since(event_type=EVENT_DELAYED, shipment_id=shipment_id, since=since):
            return True
        return self.queue.exists_since(event_type=EVENT_DELAYED, shipment_id=shipment_id, since=since)

    def history(self, user_id: str, *, event_type: str | None = None, limit: int = 50) -> list[NotificationLog]:
        self._require_user(user_id)
        return self.log.list_for_user(user_id, event_type=event_type, limit=limit)

    def stats(self, user_id: str) -> dict:
        self._require_user(user_id)
        counts = self.log.status_counts(user_id)
        return {
            "user_id": user_id,
            "total": sum(counts.values()),
            "sent": counts.get("sent", 0),
            "failed": counts.get("failed", 0),
        }

    def _require_user(self, user_id: str) -> User:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise AppError(ErrorCatalog.USER_NOT_FOUND, details={"user_id": user_id})
        return user
