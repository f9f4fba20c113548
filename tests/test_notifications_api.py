from tests.helpers import create_shipment, create_user


def test_publish_event_history_and_stats(client, db_session, email_outbox):
    user = create_user(db_session)
    shipment = create_shipment(db_session, status="arrived_klm", order_ref="PO-55")

    response = client.post(
        "/importflow/notifications/events",
        json={"event_type": "shipment_arrival", "shipment_id": shipment.id, "event_data": {"dock": "3"}},
    )
    assert response.status_code == 202
    assert response.json()["sent"] == 1
    assert email_outbox.sent[0]["subject"] == "Shipment Arrived: PO-55"

    history = client.get(f"/importflow/notifications/history/{user.id}")
    assert history.status_code == 200
    assert history.json()["rows"][0]["event_type"] == "shipment_arrival"

    stats = client.get(f"/importflow/notifications/stats/{user.id}")
    assert stats.json() == {"user_id": user.id, "total": 1, "sent": 1, "failed": 0}


def test_unknown_event_type_is_validation_error(client):
    response = client.post("/importflow/notifications/events", json={"event_type": "meteor_strike"})
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_history_for_unknown_user(client):
    response = client.get("/importflow/notifications/history/ghost")
    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"
