import json
from datetime import datetime, timedelta

from app.importflow.db.models import ArchiveRecord
from app.ops import notification_jobs
from app.ops.notification_jobs import run_job
from tests.helpers import RecordingEmailTransport, create_shipment, create_user, set_preference


def test_auto_archive_job_json(db_session, capsys):
    create_shipment(db_session, status="arrived_pta", updated_at=datetime.utcnow() - timedelta(days=60))

    database_url = str(db_session.get_bind().url)
    exit_code = run_job("auto-archive", "json", database_url=database_url)
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["job"] == "auto-archive"
    assert payload["processed"] == 1
    db_session.expire_all()
    assert db_session.query(ArchiveRecord).count() == 1


def test_digest_job_reports_failures(db_session, capsys):
    user = create_user(db_session)
    set_preference(db_session, user, email_frequency="weekly")
    from app.importflow.services.digest import DigestService

    DigestService(db_session, RecordingEmailTransport()).enqueue(
        user.id,
        "delayed_shipment",
        {},
        now=datetime.utcnow() - timedelta(days=1),
    )

    database_url = str(db_session.get_bind().url)
    exit_code = run_job(
        "weekly-digest",
        "text",
        database_url=database_url,
        transport=RecordingEmailTransport(fail=True),
    )
    output = capsys.readouterr().out

    assert exit_code == 1
    assert "Job: weekly-digest" in output
    assert "Failed: 1" in output


def test_jobs_disabled_exit_code(db_session, capsys, monkeypatch):
    monkeypatch.setattr(notification_jobs.settings, "OPS_ENABLE_SCHEDULED_JOBS", False)

    exit_code = run_job("cleanup", "json", database_url=str(db_session.get_bind().url))

    assert exit_code == 2
    assert "disabled" in capsys.readouterr().err
