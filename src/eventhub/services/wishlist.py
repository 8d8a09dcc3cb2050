from __future__ import annotations

import logging
from typing import Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from eventhub.db.mongo import get_collection, next_id, now_iso
from eventhub.errors import Conflict, NotFound
from eventhub.services.events import SUMMARY_FIELDS, event_summary

logger = logging.getLogger(__name__)


def _entry(event_id: int, user_id: str) -> Optional[Dict]:
    return get_collection("wishlisted_events").find_one(
        {"event_id": event_id, "user_id": user_id},
        {"_id": 0, "id": 1, "event_id": 1, "user_id": 1, "wishlisted_at": 1},
    )


def add(event_id: int, user_id: str) -> Dict:
    if _entry(event_id, user_id) is not None:
        raise Conflict("Event is already in wishlist")

    doc = {
        "id": next_id("wishlisted_events"),
        "event_id": event_id,
        "user_id": user_id,
        "wishlisted_at": now_iso(),
    }
    try:
        get_collection("wishlisted_events").insert_one(doc)
    except DuplicateKeyError:
        # lost a race with an identical add
        raise Conflict("Event is already in wishlist")
    doc.pop("_id", None)
    return doc


def remove(event_id: int, user_id: str) -> None:
    res = get_collection("wishlisted_events").delete_one({"event_id": event_id, "user_id": user_id})
    if res.deleted_count == 0:
        raise NotFound("Event not found in wishlist")


def check(event_id: int, user_id: str) -> Optional[Dict]:
    return _entry(event_id, user_id)


def wishlisted_events(user_id: str) -> List[Dict]:
    entries = list(
        get_collection("wishlisted_events")
        .find({"user_id": user_id}, {"_id": 0, "event_id": 1, "wishlisted_at": 1})
        .sort("wishlisted_at", -1)
    )
    if not entries:
        return []
    events = {
        ev["event_id"]: ev
        for ev in get_collection("all_events").find(
            {"event_id": {"$in": [e["event_id"] for e in entries]}}, SUMMARY_FIELDS
        )
    }
    # entries pointing at deleted events are skipped
    return [
        {**event_summary(events[e["event_id"]]), "wishlisted_at": e.get("wishlisted_at")}
        for e in entries
        if e["event_id"] in events
    ]
