from eventhub.db.mongo import get_collection
from fixtures import iso, seed_event


def _body(event_id, user_id="auth-user-1"):
    return {"event_id": event_id, "user_id": user_id}


def test_add_check_remove_cycle(app_client):
    ev = seed_event("Quiz")

    r = app_client.post("/api/wishlist/add", json=_body(ev["event_id"]))
    assert r.status_code == 200
    assert r.get_json()["data"]["event_id"] == ev["event_id"]

    assert app_client.post("/api/wishlist/add", json=_body(ev["event_id"])).status_code == 409
    assert get_collection("wishlisted_events").count_documents({}) == 1

    check = app_client.post("/api/wishlist/check", json=_body(ev["event_id"])).get_json()
    assert check["isWishlisted"] is True
    assert check["data"]["user_id"] == "auth-user-1"

    assert app_client.delete("/api/wishlist/remove", json=_body(ev["event_id"])).status_code == 200
    assert app_client.delete("/api/wishlist/remove", json=_body(ev["event_id"])).status_code == 404

    check = app_client.post("/api/wishlist/check", json=_body(ev["event_id"])).get_json()
    assert check == {"success": True, "isWishlisted": False, "data": None}


def test_wishlist_is_per_user(app_client):
    ev = seed_event("Quiz")
    assert app_client.post("/api/wishlist/add", json=_body(ev["event_id"], "a")).status_code == 200
    assert app_client.post("/api/wishlist/add", json=_body(ev["event_id"], "b")).status_code == 200


def test_wishlist_requires_both_ids(app_client):
    assert app_client.post("/api/wishlist/add", json={"event_id": 1}).status_code == 400
    assert app_client.post("/api/wishlist/check", json={"user_id": "x"}).status_code == 400
    assert app_client.delete("/api/wishlist/remove", json={}).status_code == 400


def test_wishlisted_events_newest_first(app_client):
    first = seed_event("Quiz")
    second = seed_event("Relay")
    gone = seed_event("Cancelled")
    coll = get_collection("wishlisted_events")
    coll.insert_many([
        {"id": 1, "event_id": first["event_id"], "user_id": "auth-user-1", "wishlisted_at": iso(-2)},
        {"id": 2, "event_id": second["event_id"], "user_id": "auth-user-1", "wishlisted_at": iso(-1)},
        {"id": 3, "event_id": gone["event_id"], "user_id": "auth-user-1", "wishlisted_at": iso(0)},
        {"id": 4, "event_id": first["event_id"], "user_id": "someone-else", "wishlisted_at": iso(0)},
    ])
    get_collection("all_events").delete_one({"event_id": gone["event_id"]})

    body = app_client.get("/api/participants/wishlisted-events?user_id=auth-user-1").get_json()
    assert body["count"] == 2
    assert [e["title"] for e in body["events"]] == ["Relay", "Quiz"]
    assert body["events"][0]["wishlisted_at"]
