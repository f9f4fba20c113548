"""Digest queue and dispatch.

Every notifiable event is appended to the queue. A digest for one user covers
the pending entries inside the period window; the entries are stamped
``processed_at`` in the same commit that records the successful send, so an
entry is consumed at most once and a failed send leaves it pending for the next
cycle. Pending rows are locked while a digest is built so overlapping
dispatchers on PostgreSQL skip them.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta

from app.importflow.core.config import settings
from app.importflow.core.error_catalog import AppError, ErrorCatalog
from app.importflow.core.job_summary import JobSummary
from app.importflow.core.logging import log_json
from app.importflow.core.metrics import metrics
from app.importflow.core.telemetry import NullTelemetrySink, TelemetryEvent, TelemetrySink
from app.importflow.db.models import DigestQueueEntry, NotificationLog
from app.importflow.repos.digest_queue import DigestQueueRepository
from app.importflow.repos.notification_log import NotificationLogRepository
from app.importflow.repos.preferences import PreferenceRepository
from app.importflow.repos.shipments import ShipmentRepository
from app.importflow.repos.users import UserRepository
from app.importflow.services.email_templates import render_digest_email
from app.importflow.services.email_transport import EmailTransport, SendResult
from app.importflow.services.preferences import PreferenceService

logger = logging.getLogger(__name__)

PERIOD_WINDOWS = {
    "daily": timedelta(hours=24),
    "weekly": timedelta(days=7),
}

OUTCOME_SENT = "sent"
OUTCOME_SKIPPED = "skipped"
OUTCOME_FAILED = "failed"


def digest_event_type(period: str) -> str:
    return f"{period}_digest"


def group_entries(entries: list[DigestQueueEntry], shipment_limit: int) -> tuple[list[tuple[str, int]], list[tuple[str, int]]]:
    by_type = Counter(entry.event_type for entry in entries)
    by_shipment = Counter(entry.shipment_id for entry in entries if entry.shipment_id)
    counts = sorted(by_type.items(), key=lambda item: (-item[1], item[0]))
    top_shipments = sorted(by_shipment.items(), key=lambda item: (-item[1], item[0]))[:shipment_limit]
    return counts, top_shipments


class DigestService:
    def __init__(self, db, transport: EmailTransport, telemetry: TelemetrySink | None = None):
        self.db = db
        self.transport = transport
        self.telemetry = telemetry or NullTelemetrySink()
        self.queue = DigestQueueRepository(db)
        self.log = NotificationLogRepository(db)
        self.preferences = PreferenceService(db)
        self.preference_repo = PreferenceRepository(db)
        self.users = UserRepository(db)
        self.shipments = ShipmentRepository(db)

    def enqueue(
        self,
        user_id: str,
        event_type: str,
        event_data: dict | None = None,
        shipment_id: str | None = None,
        *,
        now: datetime | None = None,
    ) -> DigestQueueEntry:
        entry = DigestQueueEntry(
            user_id=user_id,
            event_type=event_type,
            shipment_id=shipment_id,
            event_data=event_data or {},
            created_at=now or datetime.utcnow(),
            processed_at=None,
        )
        return self.queue.append(entry)

    def dispatch_digest(self, user_id: str, period: str, *, now: datetime | None = None) -> bool:
        return self._dispatch(user_id, period, now=now or datetime.utcnow()) == OUTCOME_SENT

    def _dispatch(self, user_id: str, period: str, *, now: datetime) -> str:
        window = PERIOD_WINDOWS.get(period)
        if window is None:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"period": period, "allowed": list(PERIOD_WINDOWS)})

        preference = self.preferences.resolve(user_id)
        if not preference.email_enabled or preference.email_frequency != period:
            return self._finish(period, OUTCOME_SKIPPED, user_id, reason="preference")

        user = self.users.get_by_id(user_id)
        address = preference.email_address or (user.email if user is not None else None)
        if not address:
            return self._finish(period, OUTCOME_SKIPPED, user_id, reason="no_address")

        entries = self.queue.query_unprocessed(user_id, now - window, claim=True)
        if not entries:
            return self._finish(period, OUTCOME_SKIPPED, user_id, reason="empty")

        counts, top_shipments = group_entries(entries, settings.DIGEST_SHIPMENT_CONTEXT_LIMIT)
        loaded = {}
        if top_shipments:
            shipment_ids = [shipment_id for shipment_id, _ in top_shipments]
            loaded = {shipment.id: shipment for shipment in self.shipments.find_many(ids=shipment_ids)}
        email = render_digest_email(
            period,
            counts,
            [(loaded.get(shipment_id), shipment_id, count) for shipment_id, count in top_shipments],
            username=user.username if user is not None else None,
            generated_at=now,
        )

        try:
            result = self.transport.send(address, email.subject, email.html, email.text)
        except Exception as exc:
            logger.exception("Digest transport raised", extra={"user_id": user_id, "period": period})
            result = SendResult(success=False, error=f"{exc.__class__.__name__}: {exc}")
        if not result.success:
            self.log.create(
                NotificationLog(
                    user_id=user_id,
                    event_type=digest_event_type(period),
                    subject=email.subject,
                    message=email.html,
                    status="failed",
                    error_message=result.error,
                    sent_at=now,
                )
            )
            self.telemetry.record(
                TelemetryEvent(
                    name="digest_send_failed",
                    severity="warning",
                    attributes={"user_id": user_id, "period": period, "pending_entries": len(entries)},
                )
            )
            return self._finish(period, OUTCOME_FAILED, user_id, reason=result.error)

        try:
            marked = self.queue.mark_processed([entry.id for entry in entries], now)
            if marked < len(entries):
                log_json(
                    logger,
                    {
                        "event": "digest_entries_already_processed",
                        "period": period,
                        "user_id": user_id,
                        "expected": len(entries),
                        "marked": marked,
                    },
                    level=logging.WARNING,
                )
            self.log.add(
                NotificationLog(
                    user_id=user_id,
                    event_type=digest_event_type(period),
                    subject=email.subject,
                    message=email.html,
                    status="sent",
                    sent_at=now,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self._finish(period, OUTCOME_SENT, user_id, entries=len(entries), message_id=result.message_id)

    def _finish(self, period: str, outcome: str, user_id: str, **fields) -> str:
        metrics.increment_digest(period, outcome)
        log_json(
            logger,
            {"event": "digest_dispatch", "period": period, "outcome": outcome, "user_id": user_id, **fields},
            level=logging.WARNING if outcome == OUTCOME_FAILED else logging.INFO,
        )
        return outcome

    def dispatch_all_due(self, period: str, *, now: datetime | None = None) -> JobSummary:
        if period not in PERIOD_WINDOWS:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"period": period, "allowed": list(PERIOD_WINDOWS)})
        now = now or datetime.utcnow()
        user_ids = [preference.user_id for preference in self.preference_repo.list_by_frequency(period)]
        outcomes = Counter()
        errors = []
        for user_id in user_ids:
            try:
                outcome = self._dispatch(user_id, period, now=now)
            except Exception as exc:
                self.db.rollback()
                logger.exception("Digest dispatch crashed", extra={"user_id": user_id, "period": period})
                self.telemetry.record(
                    TelemetryEvent(
                        name="digest_dispatch_error",
                        severity="error",
                        attributes={"user_id": user_id, "period": period, "error_class": exc.__class__.__name__},
                    )
                )
                outcome = OUTCOME_FAILED
                errors.append({"user_id": user_id, "error": exc.__class__.__name__})
            outcomes[outcome] += 1
        details = {
            "users": len(user_ids),
            "sent": outcomes[OUTCOME_SENT],
            "skipped": outcomes[OUTCOME_SKIPPED],
        }
        if errors:
            details["errors"] = errors
        summary = JobSummary(
            job=f"{period}-digest",
            processed=outcomes[OUTCOME_SENT],
            failed=outcomes[OUTCOME_FAILED],
            details=details,
        )
        log_json(logger, {"event": "digest_job_completed", **summary.to_dict()})
        return summary

    def cleanup_older_than(self, days: int | None = None, *, now: datetime | None = None) -> JobSummary:
        """Purge queue entries and log rows beyond the retention window.

        Entries are deleted whether or not they were ever included in a digest.
        """
        days = settings.DIGEST_RETENTION_DAYS if days is None else days
        cutoff = (now or datetime.utcnow()) - timedelta(days=days)
        queue_deleted = self.queue.delete_older_than(cutoff)
        log_deleted = self.log.delete_older_than(cutoff)
        summary = JobSummary(
            job="cleanup",
            processed=queue_deleted + log_deleted,
            details={"retention_days": days, "queue_deleted": queue_deleted, "log_deleted": log_deleted},
        )
        log_json(logger, {"event": "notification_cleanup", **summary.to_dict()})
        return summary
