from datetime import datetime, timedelta

from app.importflow.services.digest import DigestService
from tests.helpers import create_user, set_preference


def test_trigger_daily_digest_and_read_logs(client, db_session, email_outbox):
    user = create_user(db_session)
    set_preference(db_session, user, email_frequency="daily")
    DigestService(db_session, email_outbox).enqueue(
        user.id,
        "inspection_passed",
        {},
        now=datetime.utcnow() - timedelta(hours=1),
    )

    response = client.post("/importflow/scheduler/trigger/daily-digest")
    assert response.status_code == 200
    assert response.json()["job"] == "daily-digest"
    assert response.json()["processed"] == 1
    assert len(email_outbox.sent) == 1

    logs = client.get("/importflow/scheduler/logs")
    assert logs.status_code == 200
    assert logs.json()["rows"][0]["event_type"] == "daily_digest"
    assert logs.json()["rows"][0]["status"] == "sent"


def test_trigger_unknown_job(client):
    response = client.post("/importflow/scheduler/trigger/reindex")
    assert response.status_code == 400
    assert response.json()["code"] == "UNKNOWN_JOB"


def test_trigger_cleanup(client):
    response = client.post("/importflow/scheduler/trigger/cleanup")
    assert response.status_code == 200
    assert response.json()["details"]["retention_days"] == 90


def test_jobs_disabled(client, monkeypatch):
    from app.importflow.routers import scheduler

    monkeypatch.setattr(scheduler.settings, "OPS_ENABLE_SCHEDULED_JOBS", False)

    response = client.post("/importflow/scheduler/trigger/delayed-check")
    assert response.status_code == 409
    assert response.json()["code"] == "JOBS_DISABLED"
