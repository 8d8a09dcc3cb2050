from __future__ import annotations

from flask import Blueprint, jsonify, request

from eventhub.api import json_body
from eventhub.errors import InvalidInput
from eventhub.services import past_events, profiles, registrations, wishlist
from eventhub.utils.fields import parse_id

bp = Blueprint("api_participants", __name__)


def _arg(name: str, message: str) -> str:
    v = request.args.get(name)
    if not v:
        raise InvalidInput(message)
    return v


@bp.get("/participants/profile")
def get_profile():
    """
    GET /api/participants/profile?user_id=<account id>
    Profile may be null for accounts that never submitted one.
    """
    return jsonify(profiles.get_profile(_arg("user_id", "User ID is required")))


@bp.post("/participants/profile")
def save_profile():
    return jsonify(profiles.save_profile(json_body()))


@bp.post("/participants/register")
def register():
    """
    POST /api/participants/register
    {"event_id", "participant_id": <account id>, "registration_type"?, "team_name"?}
    """
    data = json_body()
    if not data.get("event_id") or not data.get("participant_id"):
        raise InvalidInput("Missing required fields: event_id and participant_id")
    result = registrations.register(
        parse_id(data["event_id"], "event_id"),
        data["participant_id"],
        registration_type=data.get("registration_type"),
        team_name=data.get("team_name"),
    )
    return jsonify({"success": True, **result})


@bp.get("/participants/check-registration")
def check_registration():
    """
    GET /api/participants/check-registration?event_id=1&participant_id=<account id>
    """
    event_id = request.args.get("event_id")
    user_id = request.args.get("participant_id")
    if not event_id or not user_id:
        raise InvalidInput("Missing required parameters: event_id and participant_id")
    return jsonify(registrations.check_registration(parse_id(event_id, "event_id"), user_id))


@bp.get("/participants/registered-events")
def registered_events():
    rows = registrations.registered_events(_arg("user_id", "User ID is required"))
    return jsonify({"success": True, "events": rows, "count": len(rows)})


@bp.get("/participants/wishlisted-events")
def wishlisted_events():
    rows = wishlist.wishlisted_events(_arg("user_id", "User ID is required"))
    return jsonify({"success": True, "events": rows, "count": len(rows)})


@bp.get("/participants/won-events")
def won_events():
    """
    GET /api/participants/won-events?user_id=<account id>
    Each event carries won_as: "team" | "individual".
    """
    rows = past_events.won_events(_arg("user_id", "User ID is required"))
    return jsonify({"success": True, "events": rows, "count": len(rows)})


@bp.get("/participants/registered-users")
def registered_users():
    event_id = parse_id(_arg("event_id", "event_id is required"), "event_id")
    return jsonify({"users": registrations.registered_users(event_id)})
