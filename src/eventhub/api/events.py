from __future__ import annotations

from flask import Blueprint, jsonify, request

from eventhub.analytics.stats import event_stats
from eventhub.api import json_body
from eventhub.errors import InvalidInput
from eventhub.services import events, past_events
from eventhub.utils.fields import parse_id

bp = Blueprint("api_events", __name__)


def _event_id_arg() -> int:
    raw = request.args.get("event_id")
    if not raw:
        raise InvalidInput("Event ID is required")
    return parse_id(raw, "event_id")


@bp.get("/events")
def list_events():
    """
    GET /api/events[?adminId=...]
    Without adminId: every event by start date. With it: the admin's approved
    events, newest first.
    """
    rows = events.list_events(request.args.get("adminId"))
    return jsonify({"events": rows, "count": len(rows)})


@bp.post("/events")
def create_event():
    """
    POST /api/events
    Requires event_name, start_date, end_date, description. Fills in the
    matching skeleton row when one exists.
    """
    event, completed = events.create_event(json_body())
    return jsonify({"success": True, "event": event, "completed_skeleton": completed})


@bp.get("/events/<int:event_id>")
def get_event(event_id: int):
    return jsonify({"event": events.get_event(event_id)})


@bp.get("/events/stats")
def stats():
    return jsonify(event_stats())


@bp.get("/events/update-past-events")
def past_events_status():
    """GET /api/events/update-past-events -> how many ended events still need a record."""
    return jsonify({"success": True, **events.past_events_status()})


@bp.post("/events/update-past-events")
def update_past_events():
    return jsonify({"success": True, **events.migrate_past_events()})


@bp.get("/events/registration-info")
def registration_info():
    """
    GET /api/events/registration-info?event_id=1
    available_spots is null when the event has no capacity.
    """
    return jsonify({"success": True, "event": events.registration_info(_event_id_arg())})


@bp.get("/events/past-event-details")
def get_past_event_details():
    return jsonify({"success": True, **past_events.get_details(_event_id_arg())})


@bp.post("/events/past-event-details")
def save_past_event_details():
    """
    POST /api/events/past-event-details
    {"event_id": 1, "photos"?: [...], "winners"?: [...] | {...}, "event_details"?: "..."}
    """
    data = json_body()
    if not data.get("event_id"):
        raise InvalidInput("Event ID is required")
    result = past_events.save_details(parse_id(data["event_id"], "event_id"), data)
    return jsonify({"success": True, **result})


@bp.post("/events/add-feedback")
def add_feedback():
    """
    POST /api/events/add-feedback {"event_id", "participant_id", "feedback_text"}
    Only registered participants may leave feedback; resubmitting replaces it.
    """
    data = json_body()
    if not data.get("event_id"):
        raise InvalidInput("Event ID, participant ID, and feedback text are required")
    result = past_events.add_feedback(
        parse_id(data["event_id"], "event_id"),
        data.get("participant_id"),
        data.get("feedback_text"),
    )
    return jsonify({"success": True, **result})
