from app.importflow.core.metrics import metrics


def test_metrics_endpoint_exposes_domain_counters(client):
    metrics.reset()
    created = client.post(
        "/importflow/shipments",
        json={"order_ref": "PO-M", "supplier": "Acme", "status": "arrived_pta"},
    ).json()
    client.post(f"/importflow/shipments/{created['id']}/transition", json={"status": "stored"})

    response = client.get("/importflow/ops/metrics")

    assert response.status_code == 200
    content = response.text
    if metrics.enabled:
        assert 'shipment_status_transitions_total{target_status="stored"} 1.0' in content
        assert "http_requests_total" in content
    else:
        assert "metrics_disabled" in content
