from app.importflow.db.models import DigestQueueEntry
from tests.helpers import create_user


def _create(client, **overrides):
    payload = {"order_ref": "PO-100", "supplier": "Acme", "status": "in_transit_seaway"}
    payload.update(overrides)
    response = client.post("/importflow/shipments", json=payload)
    assert response.status_code == 201
    return response.json()


def test_create_get_and_list_shipments(client):
    created = _create(client, quantity=40)

    fetched = client.get(f"/importflow/shipments/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["quantity"] == 40

    _create(client, order_ref="PO-101", status="arrived_pta")
    listing = client.get("/importflow/shipments", params={"status": "arrived_pta"})
    assert listing.status_code == 200
    assert [row["order_ref"] for row in listing.json()["rows"]] == ["PO-101"]


def test_create_with_unknown_status_is_invalid_state(client):
    response = client.post(
        "/importflow/shipments",
        json={"order_ref": "PO-1", "supplier": "Acme", "status": "lost"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_STATE"


def test_transition_endpoint(client):
    created = _create(client)

    response = client.post(
        f"/importflow/shipments/{created['id']}/transition",
        json={"status": "archived"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "archived"
    assert body["archived_at"] is not None


def test_transition_errors(client):
    created = _create(client)

    missing = client.post("/importflow/shipments/nope/transition", json={"status": "stored"})
    assert missing.status_code == 404
    assert missing.json()["code"] == "SHIPMENT_NOT_FOUND"

    invalid = client.post(f"/importflow/shipments/{created['id']}/transition", json={"status": "flying"})
    assert invalid.status_code == 400
    assert invalid.json()["code"] == "INVALID_STATE"
    assert invalid.json()["trace_id"]

    bad_metadata = client.post(
        f"/importflow/shipments/{created['id']}/transition",
        json={"status": "stored", "metadata": {"archived_at": "2024-01-01"}},
    )
    assert bad_metadata.status_code == 422
    assert bad_metadata.json()["code"] == "VALIDATION_ERROR"


def test_workflow_actions_publish_events(client, db_session, email_outbox):
    user = create_user(db_session)
    created = _create(client, status="arrived_pta", quantity=10)
    shipment_id = created["id"]

    assert client.post(f"/importflow/shipments/{shipment_id}/start-unloading").json()["status"] == "unloading"
    assert client.post(f"/importflow/shipments/{shipment_id}/complete-unloading").json()["status"] == (
        "inspection_pending"
    )
    assert client.post(
        f"/importflow/shipments/{shipment_id}/start-inspection",
        json={"inspected_by": "qa-1"},
    ).json()["status"] == "inspecting"
    rejected = client.post(
        f"/importflow/shipments/{shipment_id}/reject",
        json={"reason": "Broken pallets"},
    )
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "inspection_failed"

    db_session.expire_all()
    entries = db_session.query(DigestQueueEntry).filter_by(user_id=user.id).order_by(DigestQueueEntry.id).all()
    event_types = [entry.event_type for entry in entries]
    assert event_types == ["post_arrival_update", "post_arrival_update", "post_arrival_update", "inspection_failed"]
    assert email_outbox.sent[-1]["subject"].startswith("Inspection Failed")


def test_receiving_actions(client):
    created = _create(client, status="inspection_passed", quantity=10)
    shipment_id = created["id"]

    assert client.post(
        f"/importflow/shipments/{shipment_id}/start-receiving",
        json={"received_by": "clerk"},
    ).json()["status"] == "receiving"
    received = client.post(
        f"/importflow/shipments/{shipment_id}/complete-receiving",
        json={"received_quantity": 10},
    ).json()
    assert received["status"] == "received"
    assert received["receiving_status"] == "completed"
    assert client.post(f"/importflow/shipments/{shipment_id}/mark-stored").json()["status"] == "stored"


def test_complete_inspection_endpoint(client):
    created = _create(client, status="inspecting")

    response = client.post(
        f"/importflow/shipments/{created['id']}/complete-inspection",
        json={"passed": True, "notes": "All good"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "inspection_passed"
    assert response.json()["inspection_status"] == "passed"
