from __future__ import annotations

from datetime import datetime

from app.importflow.core.error_catalog import AppError, ErrorCatalog
from app.importflow.core.job_summary import JobSummary
from app.importflow.core.telemetry import TelemetrySink
from app.importflow.services.archive import ArchiveService
from app.importflow.services.digest import DigestService
from app.importflow.services.email_transport import EmailTransport
from app.importflow.services.notifications import NotificationService

JOB_NAMES = ("daily-digest", "weekly-digest", "delayed-check", "auto-archive", "cleanup")


def run_job(
    db,
    job_name: str,
    *,
    transport: EmailTransport,
    telemetry: TelemetrySink | None = None,
    now: datetime | None = None,
) -> JobSummary:
    if job_name == "daily-digest":
        return DigestService(db, transport, telemetry).dispatch_all_due("daily", now=now)
    if job_name == "weekly-digest":
        return DigestService(db, transport, telemetry).dispatch_all_due("weekly", now=now)
    if job_name == "delayed-check":
        return NotificationService(db, transport, telemetry).check_delayed_shipments(now=now)
    if job_name == "auto-archive":
        return ArchiveService(db, telemetry).run_auto_archive(now=now)
    if job_name == "cleanup":
        return DigestService(db, transport, telemetry).cleanup_older_than(now=now)
    raise AppError(ErrorCatalog.UNKNOWN_JOB, details={"job": job_name, "allowed": list(JOB_NAMES)})
