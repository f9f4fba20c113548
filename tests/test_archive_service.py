from datetime import timedelta

import pytest

from app.importflow.core.error_catalog import AppError, ErrorCatalog
from app.importflow.db.models import ArchiveRecord, Shipment
from app.importflow.services.archive import (
    ArchiveService,
    build_archive_key,
    find_eligible_for_auto_archive,
    sanitize_for_key,
)
from app.importflow.services.transitions import ShipmentTransitionService
from tests.helpers import NOW, create_shipment


def test_sanitize_for_key():
    assert sanitize_for_key("PO 12/34") == "PO_12_34"
    assert sanitize_for_key("__a  b__") == "a_b"
    assert sanitize_for_key(None) == ""


def test_manual_key_is_bounded_and_contains_refs():
    shipments = [Shipment(order_ref=f"REF-{index:04d}") for index in range(50)]

    key = build_archive_key("manual", shipments, NOW, max_refs_length=40)

    assert key.startswith("manual_archive_REF-0000_REF-0001")
    assert key.endswith(".json")
    assert len(key) < 40 + len("manual_archive__2024-06-01T12-00-00-000000Z.json") + 1


def test_auto_and_snapshot_keys():
    assert build_archive_key("auto", [], NOW) == "auto_archive_arrived_2024-06-01T12-00-00-000000Z.json"
    assert build_archive_key("import-snapshot", [], NOW) == "shipments_2024-06-01T12-00-00-000000Z.json"


def test_find_eligible_for_auto_archive():
    old_arrived = Shipment(status="arrived_pta", updated_at=NOW - timedelta(days=45))
    old_klm = Shipment(status="arrived_klm", updated_at=NOW - timedelta(days=31))
    recent_arrived = Shipment(status="arrived_pta", updated_at=NOW - timedelta(days=10))
    old_stored = Shipment(status="stored", updated_at=NOW - timedelta(days=90))

    eligible = find_eligible_for_auto_archive(
        [old_arrived, old_klm, recent_arrived, old_stored],
        30,
        now=NOW,
    )

    assert eligible == [old_arrived, old_klm]


def test_archive_rejects_empty_input(db_session):
    with pytest.raises(AppError) as exc:
        ArchiveService(db_session).archive([], "manual")

    assert exc.value.error == ErrorCatalog.EMPTY_INPUT


def test_auto_archive_moves_only_eligible_shipments(db_session):
    old = [
        create_shipment(db_session, status="arrived_pta", updated_at=NOW - timedelta(days=45))
        for _ in range(12)
    ]
    recent = [
        create_shipment(db_session, status="arrived_pta", updated_at=NOW - timedelta(days=5))
        for _ in range(28)
    ]

    summary = ArchiveService(db_session).run_auto_archive(30, now=NOW)

    assert summary.processed == 12
    assert summary.failed == 0
    records = db_session.query(ArchiveRecord).all()
    assert len(records) == 1
    assert records[0].archive_type == "auto"
    assert records[0].total_shipments == 12
    assert records[0].file_name.startswith("auto_archive_arrived_")
    for shipment in old:
        db_session.refresh(shipment)
        assert shipment.status == "archived"
        assert shipment.archived_at is not None
    for shipment in recent:
        db_session.refresh(shipment)
        assert shipment.status == "arrived_pta"
        assert shipment.archived_at is None


def test_auto_archive_with_nothing_eligible_writes_no_record(db_session):
    create_shipment(db_session, status="arrived_pta", updated_at=NOW - timedelta(days=2))

    summary = ArchiveService(db_session).run_auto_archive(30, now=NOW)

    assert summary.processed == 0
    assert db_session.query(ArchiveRecord).count() == 0


def test_manual_archive_snapshots_pre_archive_state(db_session):
    shipment = create_shipment(db_session, status="inspecting", order_ref="PO-77")
    ShipmentTransitionService(db_session).reject_shipment(shipment.id, "Contaminated", now=NOW)

    record = ArchiveService(db_session).archive_by_ids([shipment.id], "manual", "Rejected at inspection", now=NOW)

    assert record.file_name.startswith("manual_archive_PO-77_")
    assert record.total_shipments == 1
    snapshot = record.payload[0]
    assert snapshot["status"] == "inspection_failed"
    assert snapshot["rejection_reason"] == "Contaminated"
    db_session.refresh(shipment)
    assert shipment.status == "archived"
    assert shipment.archived_at is not None


def test_archive_leaves_unreferenced_shipments_untouched(db_session):
    target = create_shipment(db_session, status="stored")
    other = create_shipment(db_session, status="stored")

    ArchiveService(db_session).archive([target], "manual", now=NOW)

    db_session.refresh(other)
    assert other.status == "stored"
    assert other.archived_at is None


def test_archive_failure_rolls_back_record_and_statuses(db_session, monkeypatch):
    first = create_shipment(db_session, status="stored")
    second = create_shipment(db_session, status="stored")
    service = ArchiveService(db_session)
    original_apply = service.transitions.apply
    calls = []

    def failing_apply(shipment, target_status, metadata=None, *, now=None):
        calls.append(shipment.id)
        if len(calls) == 2:
            raise RuntimeError("store unavailable")
        return original_apply(shipment, target_status, metadata, now=now)

    monkeypatch.setattr(service.transitions, "apply", failing_apply)

    with pytest.raises(RuntimeError):
        service.archive([first, second], "manual", now=NOW)

    assert db_session.query(ArchiveRecord).count() == 0
    assert {row.status for row in db_session.query(Shipment).all()} == {"stored"}


def test_archive_is_idempotent_by_key(db_session):
    shipment = create_shipment(db_session, status="stored")
    service = ArchiveService(db_session)

    first = service.archive([shipment], "manual", archive_key="retry-key.json", now=NOW)
    second = service.archive([shipment], "manual", archive_key="retry-key.json", now=NOW + timedelta(minutes=1))

    assert first.id == second.id
    assert db_session.query(ArchiveRecord).count() == 1


def test_resuming_a_key_rejects_shipments_outside_its_payload(db_session):
    captured = create_shipment(db_session, status="stored", order_ref="PO-IN")
    stray = create_shipment(db_session, status="stored", order_ref="PO-OUT")
    service = ArchiveService(db_session)
    first = service.archive([captured], "manual", now=NOW)

    with pytest.raises(AppError) as exc:
        service.archive([stray], "manual", archive_key=first.file_name, now=NOW + timedelta(minutes=1))

    assert exc.value.error == ErrorCatalog.VALIDATION_ERROR
    assert exc.value.details["shipment_ids_not_in_archive"] == [stray.id]
    db_session.expire_all()
    assert db_session.get(Shipment, stray.id).status == "stored"
    record = db_session.query(ArchiveRecord).one()
    assert [row["id"] for row in record.payload] == [captured.id]
    assert record.total_shipments == 1


def test_rename_changes_key_and_label_only(db_session):
    shipment = create_shipment(db_session, status="stored")
    service = ArchiveService(db_session)
    record = service.archive([shipment], "manual", now=NOW)
    payload = list(record.payload)

    renamed = service.rename(record.file_name, "Q2 Rejects", now=NOW + timedelta(days=1))

    assert renamed.file_name.startswith("custom_archive_Q2_Rejects_")
    assert renamed.display_name == "Q2 Rejects"
    assert renamed.payload == payload
    assert renamed.total_shipments == 1


def test_rename_missing_archive(db_session):
    with pytest.raises(AppError) as exc:
        ArchiveService(db_session).rename("nope.json", "Anything")

    assert exc.value.error == ErrorCatalog.ARCHIVE_NOT_FOUND


def test_auto_archive_stats(db_session):
    create_shipment(db_session, status="arrived_klm", updated_at=NOW - timedelta(days=40))
    create_shipment(db_session, status="arrived_pta", updated_at=NOW - timedelta(days=3))

    stats = ArchiveService(db_session).auto_archive_stats(30, now=NOW)

    assert stats["total_arrived"] == 2
    assert stats["eligible_for_archive"] == 1
    assert stats["eligible_shipments"][0]["days_old"] == 40


def test_forty_stale_arrivals_archive_into_one_record(db_session):
    shipments = [
        create_shipment(db_session, status="arrived_pta", updated_at=NOW - timedelta(days=35))
        for _ in range(40)
    ]

    eligible = find_eligible_for_auto_archive(shipments, 30, now=NOW)
    assert len(eligible) == 40

    record = ArchiveService(db_session).archive(eligible, "auto", now=NOW)

    assert record.total_shipments == 40
    assert db_session.query(ArchiveRecord).count() == 1
    statuses = {row.status for row in db_session.query(Shipment).all()}
    assert statuses == {"archived"}
    assert db_session.query(Shipment).filter(Shipment.archived_at.is_(None)).count() == 0


def test_failed_inspection_can_be_archived_manually(db_session):
    shipment = create_shipment(db_session, status="inspecting")
    ShipmentTransitionService(db_session).complete_inspection(shipment.id, False, now=NOW)

    record = ArchiveService(db_session).archive([shipment], "manual", "rejected", now=NOW)

    assert record.archive_type == "manual"
    assert record.reason == "rejected"
    db_session.refresh(shipment)
    assert shipment.status == "archived"
