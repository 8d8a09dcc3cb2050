from fixtures import seed_event


def test_health(app_client):
    r = app_client.get("/api/health")
    assert r.status_code == 200
    data = r.get_json()
    assert isinstance(data, dict)
    assert data.get("status") == "ok"
    assert data.get("env") in {"testing", "development", "production"}
    assert data["config"]["identity_configured"] is False


def test_debug_counts_lists_core_collections(app_client):
    seed_event("Counted")
    r = app_client.get("/api/debug-counts")
    assert r.status_code == 200
    body = r.get_json()
    assert body["all_events"] == 1
    assert body["wishlisted_events"] == 0
