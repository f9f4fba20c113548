from __future__ import annotations

import argparse
import json
import sys

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.importflow.core.config import settings
from app.importflow.core.logging import configure_logging
from app.importflow.core.telemetry import BufferedTelemetrySink
from app.importflow.services.email_transport import EmailTransport, build_email_transport
from app.importflow.services.jobs import JOB_NAMES, run_job as run_service_job


def _format_text(summary: dict) -> str:
    lines = [
        f"Job: {summary['job']}",
        f"Processed: {summary['processed']}",
        f"Failed: {summary['failed']}",
    ]
    for key, value in summary["details"].items():
        lines.append(f"  {key}={json.dumps(value, default=str)}")
    return "\n".join(lines)


def run_job(
    job: str,
    output_format: str,
    *,
    database_url: str | None = None,
    transport: EmailTransport | None = None,
) -> int:
    if not settings.OPS_ENABLE_SCHEDULED_JOBS:
        print("Scheduled jobs disabled by OPS_ENABLE_SCHEDULED_JOBS.", file=sys.stderr)
        return 2
    engine = create_engine(database_url or settings.DATABASE_URL, future=True)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    telemetry = BufferedTelemetrySink(settings.TELEMETRY_BUFFER_SIZE)
    with SessionLocal() as db:
        summary = run_service_job(
            db,
            job,
            transport=transport or build_email_transport(settings),
            telemetry=telemetry,
        ).to_dict()
    engine.dispose()
    if output_format == "json":
        print(json.dumps(summary, indent=2, default=str))
    else:
        print(_format_text(summary))
    if summary["failed"] > 0:
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="IMPORTFLOW scheduled jobs")
    parser.add_argument("--job", required=True, choices=list(JOB_NAMES))
    parser.add_argument("--format", choices=["json", "text"], default="text")
    args = parser.parse_args(argv)
    configure_logging()
    return run_job(args.job, args.format)


if __name__ == "__main__":
    raise SystemExit(main())
