from __future__ import annotations

from typing import Tuple

from flask import Blueprint, jsonify

from eventhub.api import json_body
from eventhub.errors import InvalidInput
from eventhub.services import wishlist
from eventhub.utils.fields import parse_id

bp = Blueprint("api_wishlist", __name__)


def _pair() -> Tuple[int, str]:
    data = json_body()
    if not data.get("event_id") or not data.get("user_id"):
        raise InvalidInput("Event ID and User ID are required")
    return parse_id(data["event_id"], "event_id"), str(data["user_id"])


@bp.post("/wishlist/add")
def add():
    """POST /api/wishlist/add {"event_id", "user_id"}; 409 if already wishlisted."""
    event_id, user_id = _pair()
    entry = wishlist.add(event_id, user_id)
    return jsonify({"success": True, "message": "Event added to wishlist successfully", "data": entry})


@bp.post("/wishlist/check")
def check():
    event_id, user_id = _pair()
    entry = wishlist.check(event_id, user_id)
    return jsonify({"success": True, "isWishlisted": entry is not None, "data": entry})


@bp.delete("/wishlist/remove")
def remove():
    """DELETE /api/wishlist/remove {"event_id", "user_id"}; 404 if not wishlisted."""
    event_id, user_id = _pair()
    wishlist.remove(event_id, user_id)
    return jsonify({"success": True, "message": "Event removed from wishlist successfully"})
