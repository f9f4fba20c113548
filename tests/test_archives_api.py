from datetime import datetime, timedelta

from tests.helpers import NOW, create_shipment


def test_manual_archive_lifecycle(client, db_session):
    first = create_shipment(db_session, status="stored", order_ref="PO-A")
    second = create_shipment(db_session, status="stored", order_ref="PO-B")

    created = client.post(
        "/importflow/archives",
        json={"shipment_ids": [first.id, second.id], "reason": "Season close"},
    )
    assert created.status_code == 201
    body = created.json()
    assert body["archive_type"] == "manual"
    assert body["total_shipments"] == 2
    assert body["file_name"].startswith("manual_archive_PO-A_PO-B_")
    assert [row["order_ref"] for row in body["payload"]] == ["PO-A", "PO-B"]

    detail = client.get(f"/importflow/archives/{body['file_name']}")
    assert detail.status_code == 200

    renamed = client.patch(f"/importflow/archives/{body['file_name']}", json={"display_name": "Season 1"})
    assert renamed.status_code == 200
    new_key = renamed.json()["file_name"]
    assert new_key.startswith("custom_archive_Season_1_")
    assert client.get(f"/importflow/archives/{body['file_name']}").status_code == 404

    listing = client.get("/importflow/archives")
    assert [row["file_name"] for row in listing.json()["rows"]] == [new_key]

    shipment = client.get(f"/importflow/shipments/{first.id}").json()
    assert shipment["status"] == "archived"


def test_archive_errors(client):
    empty = client.post("/importflow/archives", json={"shipment_ids": []})
    assert empty.status_code == 400
    assert empty.json()["code"] == "EMPTY_INPUT"

    missing = client.post("/importflow/archives", json={"shipment_ids": ["ghost"]})
    assert missing.status_code == 404
    assert missing.json()["code"] == "SHIPMENT_NOT_FOUND"

    unknown = client.patch("/importflow/archives/ghost.json", json={"display_name": "x"})
    assert unknown.status_code == 404
    assert unknown.json()["code"] == "ARCHIVE_NOT_FOUND"


def test_auto_archive_endpoints(client, db_session):
    create_shipment(db_session, status="arrived_pta", updated_at=NOW - timedelta(days=400))
    create_shipment(db_session, status="arrived_pta", updated_at=datetime.utcnow() - timedelta(days=1))

    stats = client.get("/importflow/archives/auto/stats")
    assert stats.status_code == 200
    assert stats.json()["total_arrived"] == 2
    assert stats.json()["eligible_for_archive"] == 1

    run = client.post("/importflow/archives/auto", json={"threshold_days": 30})
    assert run.status_code == 200
    assert run.json()["processed"] == 1
    assert run.json()["details"]["archive_key"].startswith("auto_archive_arrived_")
