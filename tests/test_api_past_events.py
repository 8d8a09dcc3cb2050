from __future__ import annotations

import json

from eventhub.db.mongo import get_collection
from fixtures import iso, seed_event, seed_past_event, seed_profile, seed_registration


def _ended_event(name="Finished"):
    return seed_event(name, start_date=iso(-5), end_date=iso(-3))


def _details(client, event_id):
    return client.get(f"/api/events/past-event-details?event_id={event_id}").get_json()


def test_details_for_event_without_record(app_client):
    ev = seed_event("Upcoming")
    body = _details(app_client, ev["event_id"])
    assert body["isPastEvent"] is False
    assert body["success"] is True


def test_details_requires_event_id(app_client):
    assert app_client.get("/api/events/past-event-details").status_code == 400


def test_details_decode_string_encoded_fields(app_client):
    ev = _ended_event()
    seed_past_event(
        ev["event_id"],
        photos=json.dumps(["a.jpg", "b.jpg"]),
        winners=json.dumps({"individual_winners": ["bob"], "team_winners": []}),
        students_feedback=json.dumps([{"participant_id": "p1", "feedback": "great"}]),
    )
    past = _details(app_client, ev["event_id"])["pastEvent"]
    assert past["photos"] == ["a.jpg", "b.jpg"]
    assert past["winners"] == {"individual_winners": ["bob"], "team_winners": []}
    assert past["students_feedback"][0]["feedback"] == "great"


def test_details_degrade_on_unreadable_fields(app_client):
    ev = _ended_event()
    seed_past_event(ev["event_id"], photos="[not json", winners=42, students_feedback="oops")
    r = app_client.get(f"/api/events/past-event-details?event_id={ev['event_id']}")
    assert r.status_code == 200
    past = r.get_json()["pastEvent"]
    assert past["photos"] == []
    assert past["winners"] == []
    assert past["students_feedback"] == []


def test_save_creates_then_updates_only_supplied_fields(app_client):
    ev = _ended_event()
    r = app_client.post("/api/events/past-event-details", json={
        "event_id": ev["event_id"],
        "photos": ["a.jpg"],
        "event_details": "Great turnout",
    })
    assert r.status_code == 200
    body = r.get_json()
    assert body["action"] == "created"
    assert body["pastEvent"]["photos"] == ["a.jpg"]
    assert body["pastEvent"]["winners"] == []

    r = app_client.post("/api/events/past-event-details", json={
        "event_id": ev["event_id"],
        "winners": {"individual_winners": ["bob"], "team_winners": ["Rockets"]},
    })
    body = r.get_json()
    assert body["action"] == "updated"
    assert body["pastEvent"]["photos"] == ["a.jpg"]
    assert body["pastEvent"]["event_details"] == "Great turnout"
    assert body["pastEvent"]["winners"]["team_winners"] == ["Rockets"]
    assert get_collection("past_events").count_documents({"event_id": ev["event_id"]}) == 1


def test_save_accepts_json_text(app_client):
    ev = _ended_event()
    r = app_client.post("/api/events/past-event-details", json={
        "event_id": ev["event_id"],
        "photos": '["x.png"]',
        "winners": '["alice"]',
    })
    past = r.get_json()["pastEvent"]
    assert past["photos"] == ["x.png"]
    assert past["winners"] == ["alice"]


def test_save_rejects_bad_shapes(app_client):
    ev = _ended_event()
    r = app_client.post("/api/events/past-event-details", json={"event_id": ev["event_id"], "winners": 7})
    assert r.status_code == 400
    r = app_client.post("/api/events/past-event-details", json={"event_id": ev["event_id"], "photos": "nope"})
    assert r.status_code == 400
    assert get_collection("past_events").count_documents({}) == 0


def test_save_requires_event_id(app_client):
    r = app_client.post("/api/events/past-event-details", json={"photos": []})
    assert r.status_code == 400


def _feedback(client, event_id, participant_id, text):
    return client.post("/api/events/add-feedback", json={
        "event_id": event_id,
        "participant_id": participant_id,
        "feedback_text": text,
    })


def test_feedback_from_non_participant_is_forbidden(app_client):
    ev = _ended_event()
    profile = seed_profile()
    r = _feedback(app_client, ev["event_id"], profile["profile_id"], "nice")
    assert r.status_code == 403
    assert get_collection("past_events").count_documents({}) == 0


def test_feedback_creates_record_when_missing(app_client):
    ev = _ended_event()
    profile = seed_profile()
    seed_registration(ev["event_id"], profile["profile_id"])

    r = _feedback(app_client, ev["event_id"], profile["profile_id"], "nice")
    assert r.status_code == 200
    assert r.get_json()["message"] == "Feedback added successfully"
    rec = get_collection("past_events").find_one({"event_id": ev["event_id"]})
    assert [f["feedback"] for f in rec["students_feedback"]] == ["nice"]


def test_feedback_resubmission_replaces_entry(app_client):
    ev = _ended_event()
    alice = seed_profile("auth-a", "alice")
    bob = seed_profile("auth-b", "bob")
    seed_registration(ev["event_id"], alice["profile_id"])
    seed_registration(ev["event_id"], bob["profile_id"])
    seed_past_event(ev["event_id"])

    _feedback(app_client, ev["event_id"], alice["profile_id"], "first")
    _feedback(app_client, ev["event_id"], bob["profile_id"], "from bob")
    r = _feedback(app_client, ev["event_id"], alice["profile_id"], "second")
    assert r.get_json()["message"] == "Feedback updated successfully"

    feedback = _details(app_client, ev["event_id"])["pastEvent"]["students_feedback"]
    mine = [f for f in feedback if f["participant_id"] == alice["profile_id"]]
    assert len(feedback) == 2
    assert len(mine) == 1 and mine[0]["feedback"] == "second"


def test_feedback_requires_text(app_client):
    ev = _ended_event()
    profile = seed_profile()
    seed_registration(ev["event_id"], profile["profile_id"])
    assert _feedback(app_client, ev["event_id"], profile["profile_id"], "").status_code == 400
