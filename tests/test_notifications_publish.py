from datetime import timedelta

import pytest

from app.importflow.core.error_catalog import AppError, ErrorCatalog
from app.importflow.db.models import DigestQueueEntry, NotificationLog
from app.importflow.services.notifications import NotificationService, event_type_for_status
from tests.helpers import NOW, RecordingEmailTransport, create_shipment, create_user, set_preference


def test_event_type_for_status():
    assert event_type_for_status("arrived_klm") == "shipment_arrival"
    assert event_type_for_status("inspection_failed") == "inspection_failed"
    assert event_type_for_status("delayed") == "delayed_shipment"
    assert event_type_for_status("receiving") == "post_arrival_update"
    assert event_type_for_status("in_transit_seaway") is None


def test_publish_queues_for_every_interested_user(db_session):
    immediate = create_user(db_session)
    daily = create_user(db_session)
    set_preference(db_session, daily, email_frequency="daily")
    muted = create_user(db_session)
    set_preference(db_session, muted, notify_inspection_failed=False)
    create_user(db_session, is_active=False)
    shipment = create_shipment(db_session, status="inspection_failed", order_ref="PO-9")
    transport = RecordingEmailTransport()

    result = NotificationService(db_session, transport).publish(
        "inspection_failed",
        {"rejection_reason": "Damp"},
        shipment.id,
        now=NOW,
    )

    assert result.recipients == 2
    assert result.queued == 2
    assert result.sent == 1
    queued_users = {entry.user_id for entry in db_session.query(DigestQueueEntry).all()}
    assert queued_users == {immediate.id, daily.id}
    assert [email["to"] for email in transport.sent] == [immediate.email]
    assert transport.sent[0]["subject"] == "Inspection Failed: PO-9"
    log = db_session.query(NotificationLog).one()
    assert log.user_id == immediate.id
    assert log.status == "sent"


def test_publish_records_failed_immediate_send(db_session):
    user = create_user(db_session)

    result = NotificationService(db_session, RecordingEmailTransport(fail=True)).publish(
        "warehouse_capacity",
        {"warehouse": "PTA", "capacity_percent": 91},
        now=NOW,
    )

    assert result.failed == 1
    log = db_session.query(NotificationLog).one()
    assert log.user_id == user.id
    assert log.status == "failed"
    assert log.subject == "Warehouse Capacity Alert: PTA"


def test_publish_rejects_unknown_event_and_shipment(db_session):
    service = NotificationService(db_session, RecordingEmailTransport())

    with pytest.raises(AppError) as exc:
        service.publish("shipment_teleported")
    assert exc.value.error == ErrorCatalog.VALIDATION_ERROR

    with pytest.raises(AppError) as exc:
        service.publish("shipment_arrival", shipment_id="missing")
    assert exc.value.error == ErrorCatalog.SHIPMENT_NOT_FOUND


def test_delayed_check_respects_cooldown(db_session):
    create_user(db_session)
    delayed = create_shipment(
        db_session,
        status="in_transit_seaway",
        expected_arrival_at=NOW - timedelta(days=3),
    )
    create_shipment(db_session, status="in_transit_seaway", expected_arrival_at=NOW + timedelta(days=3))
    transport = RecordingEmailTransport()
    service = NotificationService(db_session, transport)

    first = service.check_delayed_shipments(now=NOW)
    second = service.check_delayed_shipments(now=NOW + timedelta(hours=2))
    third = service.check_delayed_shipments(now=NOW + timedelta(hours=30))

    assert first.processed == 1
    assert second.processed == 0
    assert second.details["already_notified"] == 1
    assert third.processed == 1
    assert {entry.shipment_id for entry in db_session.query(DigestQueueEntry).all()} == {delayed.id}


def test_history_and_stats(db_session):
    user = create_user(db_session)
    service = NotificationService(db_session, RecordingEmailTransport())
    service.publish("workflow_assigned", {"step": "inspection"}, now=NOW)

    history = service.history(user.id)
    stats = service.stats(user.id)

    assert [row.event_type for row in history] == ["workflow_assigned"]
    assert stats == {"user_id": user.id, "total": 1, "sent": 1, "failed": 0}
    with pytest.raises(AppError):
        service.stats("ghost")
