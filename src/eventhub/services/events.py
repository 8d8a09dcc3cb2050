from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from eventhub import config
from eventhub.db.mongo import get_collection, next_id, now_iso, strip_id
from eventhub.errors import InvalidInput, NotFound
from eventhub.utils.fields import parse_dt, require, to_number

logger = logging.getLogger(__name__)

# Summary projection shared by the participant-facing listings
SUMMARY_FIELDS = {
    "_id": 0,
    "event_id": 1,
    "event_name": 1,
    "start_date": 1,
    "end_date": 1,
    "description": 1,
    "caption": 1,
    "image_url": 1,
    "total_participants_allowed": 1,
    "registered_no": 1,
}


def is_skeleton(event: Dict) -> bool:
    """A skeleton carries only its name: no description and no dates yet."""
    return (
        not event.get("description")
        and not event.get("start_date")
        and not event.get("end_date")
    )


def event_summary(event: Dict) -> Dict:
    return {
        "id": event.get("event_id"),
        "title": event.get("event_name"),
        "start_date": event.get("start_date"),
        "end_date": event.get("end_date"),
        "description": event.get("description"),
        "caption": event.get("caption"),
        "image_url": event.get("image_url"),
        "total_participants_allowed": event.get("total_participants_allowed"),
        "registered_no": event.get("registered_no"),
    }


def approved_event_names(admin_id: str) -> List[str]:
    cur = get_collection("event_admin_access").find(
        {"admin_id": admin_id, "status": "approved"}, {"_id": 0, "event_name": 1}
    )
    return sorted({r["event_name"] for r in cur if r.get("event_name")})


def list_events(admin_id: Optional[str] = None) -> List[Dict]:
    coll = get_collection("all_events")
    if not admin_id:
        return list(coll.find({}, {"_id": 0}).sort("start_date", ASCENDING))

    names = approved_event_names(admin_id)
    if not names:
        return []
    return list(coll.find({"event_name": {"$in": names}}, {"_id": 0}).sort("event_id", DESCENDING))


def get_event(event_id: int) -> Dict:
    doc = get_collection("all_events").find_one({"event_id": event_id}, {"_id": 0})
    if doc is None:
        raise NotFound("Event not found")
    return doc


def _people(rows: Any, keys: Tuple[str, str]) -> List[Dict[str, str]]:
    if not isinstance(rows, list):
        return []
    out = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        entry = {k: str(row.get(k) or "").strip() for k in keys}
        if any(entry.values()):
            out.append(entry)
    return out


def _event_fields(data: Dict) -> Dict:
    data = {**data, "event_name": str(data.get("event_name") or "").strip()}
    require(
        data,
        ("event_name", "start_date", "end_date", "description"),
        "event_name, start_date, end_date and description are required",
    )
    start = parse_dt(data["start_date"])
    end = parse_dt(data["end_date"])
    if start is None or end is None:
        raise InvalidInput("start_date and end_date must be ISO-8601 dates")
    if end < start:
        raise InvalidInput("end_date must not be before start_date")

    capacity = to_number(data.get("total_participants_allowed"))
    if capacity is not None and capacity < 0:
        raise InvalidInput("total_participants_allowed must be >= 0")

    registration_type = data.get("registration_type") or "individual"
    if registration_type not in config.REGISTRATION_TYPES:
        raise InvalidInput("registration_type must be 'individual' or 'team'")

    fields = {
        "event_name": data["event_name"],
        "description": data["description"],
        "caption": data.get("caption") or None,
        "start_date": data["start_date"],
        "end_date": data["end_date"],
        "image_url": data.get("image_url") or None,
        "total_participants_allowed": capacity,
        "registration_type": registration_type,
        "student_coordinators": _people(data.get("student_coordinators"), ("name", "phone")),
        "staff_incharge": _people(data.get("staff_incharge"), ("name", "department")),
    }
    registered = to_number(data.get("registered_no"))
    if registered is not None:
        fields["registered_no"] = registered
    return fields


def create_event(data: Dict) -> Tuple[Dict, bool]:
    """
    Create an event, completing a matching skeleton row in place when one exists.
    Returns (event, completed_skeleton).
    """
    fields = _event_fields(data)
    coll = get_collection("all_events")

    # conditional update on the skeleton predicate; concurrent creators cannot both win
    completed = coll.find_one_and_update(
        {
            "event_name": fields["event_name"],
            "description": None,
            "start_date": None,
            "end_date": None,
        },
        {"$set": {**fields, "updated_at": now_iso()}},
        sort=[("event_id", DESCENDING)],
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    if completed is not None:
        logger.info("Completed skeleton event %s (%s)", completed["event_id"], fields["event_name"])
        return completed, True

    doc = {
        "event_id": next_id("all_events"),
        "registered_no": 0,
        **fields,
        "created_at": now_iso(),
    }
    coll.insert_one(doc)
    logger.info("Created event %s (%s)", doc["event_id"], fields["event_name"])
    return strip_id(doc), False


def registration_info(event_id: int) -> Dict:
    ev = get_collection("all_events").find_one(
        {"event_id": event_id},
        {"_id": 0, "event_id": 1, "event_name": 1, "registration_type": 1,
         "total_participants_allowed": 1, "registered_no": 1},
    )
    if ev is None:
        raise NotFound("Event not found")

    capacity = to_number(ev.get("total_participants_allowed"))
    registered = to_number(ev.get("registered_no")) or 0
    available = capacity - registered if capacity is not None else None
    return {
        "id": ev["event_id"],
        "name": ev.get("event_name"),
        "registration_type": ev.get("registration_type"),
        "total_participants_allowed": ev.get("total_participants_allowed"),
        "registered_no": ev.get("registered_no"),
        "available_spots": available,
        "is_full": available is not None and available <= 0,
    }


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _ended_events(today: str) -> List[Dict]:
    cur = get_collection("all_events").find(
        {"end_date": {"$ne": None}},
        {"_id": 0, "event_id": 1, "event_name": 1, "end_date": 1},
    )
    # dates are ISO strings, so prefix order matches calendar order
    return [e for e in cur if str(e["end_date"])[:10] < today]


def migrate_past_events(today: Optional[str] = None) -> Dict:
    """
    Give every event that ended before `today` a bare past_events record.
    Running it again on the same data adds nothing.
    """
    today = today or _today()
    ended = _ended_events(today)
    if not ended:
        return {"message": "No past events found", "events_processed": 0, "events_added": 0}

    past = get_collection("past_events")
    ids = [e["event_id"] for e in ended]
    existing = {d["event_id"] for d in past.find({"event_id": {"$in": ids}}, {"_id": 0, "event_id": 1})}
    fresh = [e for e in ended if e["event_id"] not in existing]
    if not fresh:
        return {
            "message": "All past events are already in past_events table",
            "events_processed": len(ended),
            "events_added": 0,
        }

    docs = [
        {
            "past_event_id": next_id("past_events"),
            "event_id": e["event_id"],
            "photos": [],
            "winners": [],
            "event_details": None,
            "students_feedback": [],
        }
        for e in fresh
    ]
    past.insert_many(docs)
    logger.info("Added %d events to past_events", len(docs))
    return {
        "message": "Past events updated successfully",
        "events_processed": len(ended),
        "events_added": len(docs),
        "events_added_details": [
            {"past_event_id": d["past_event_id"], "event_id": d["event_id"]} for d in docs
        ],
    }


def past_events_status(today: Optional[str] = None) -> Dict:
    today = today or _today()
    ended = len(_ended_events(today))
    recorded = get_collection("past_events").count_documents({})
    return {
        "current_date": today,
        "past_events_in_all_events": ended,
        "events_in_past_events_table": recorded,
        "events_needing_migration": max(0, ended - recorded),
    }
