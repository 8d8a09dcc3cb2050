from __future__ import annotations

import logging
from typing import Dict, List, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from eventhub.db.mongo import get_collection, next_id, now_iso
from eventhub.errors import Conflict, InvalidInput, NotFound
from eventhub.services.events import SUMMARY_FIELDS, event_summary
from eventhub.services.profiles import resolve_profile
from eventhub.utils.fields import to_number

logger = logging.getLogger(__name__)


def _event_registrations(event_id: int) -> List[Dict]:
    cur = get_collection("registrations").find({"event_id": event_id}, {"_id": 0}).sort("registration_id", 1)
    return list(cur)


def find_membership(event_id: int, profile_id: str) -> Optional[Dict]:
    """The member row linking `profile_id` to any registration of the event."""
    regs = _event_registrations(event_id)
    if not regs:
        return None
    return get_collection("registration_members").find_one(
        {"registration_id": {"$in": [r["registration_id"] for r in regs]}, "participant_id": profile_id},
        {"_id": 0},
    )


def check_registration(event_id: int, user_id: str) -> Dict:
    profile_id = resolve_profile(user_id)["profile_id"]
    regs = _event_registrations(event_id)
    if not regs:
        return {
            "isRegistered": False,
            "event_id": event_id,
            "user_id": user_id,
            "profile_id": None,
            "registration_id": None,
            "has_registration_record": False,
        }

    member = find_membership(event_id, profile_id)
    return {
        "isRegistered": member is not None,
        "event_id": event_id,
        "user_id": user_id,
        "profile_id": profile_id,
        "registration_id": member["registration_id"] if member else regs[0]["registration_id"],
        "has_registration_record": True,
    }


def _registration_row(event_id: int, registration_type: str, team_name: Optional[str]) -> Dict:
    """Find or create the registration row members are attached to."""
    coll = get_collection("registrations")
    q: Dict = {"event_id": event_id, "registration_type": registration_type}
    if registration_type == "team":
        q["team_name"] = team_name
    row = coll.find_one(q, {"_id": 0})
    if row is not None:
        return row

    row = {
        "registration_id": next_id("registrations"),
        "event_id": event_id,
        "registration_type": registration_type,
        "team_name": team_name,
        "registered_at": now_iso(),
    }
    coll.insert_one(row)
    row.pop("_id", None)
    return row


def _bump(collection: str, query: Dict, field: str) -> None:
    try:
        get_collection(collection).update_one(query, {"$inc": {field: 1}})
    except PyMongoError as e:
        # the membership row is already written; the counter can be corrected later
        logger.error("Failed to update %s.%s for %s: %s", collection, field, query, e)


def reserve_seat(event_id: int, capacity: Optional[float | int]) -> bool:
    """
    Take one seat with a single conditional $inc; False when the event is full.
    registered_no never passes `capacity`.
    """
    q: Dict = {"event_id": event_id}
    if capacity is not None:
        q["$or"] = [{"registered_no": {"$lt": capacity}}, {"registered_no": None}]
    taken = get_collection("all_events").find_one_and_update(
        q, {"$inc": {"registered_no": 1}}, projection={"_id": 0, "registered_no": 1}
    )
    return taken is not None


def release_seat(event_id: int) -> None:
    try:
        get_collection("all_events").update_one(
            {"event_id": event_id, "registered_no": {"$gt": 0}}, {"$inc": {"registered_no": -1}}
        )
    except PyMongoError as e:
        logger.error("Failed to release seat for event %s: %s", event_id, e)


def register(event_id: int, user_id: str, registration_type: Optional[str] = None,
             team_name: Optional[str] = None) -> Dict:
    profile_id = resolve_profile(user_id)["profile_id"]

    if find_membership(event_id, profile_id) is not None:
        raise Conflict("Participant is already registered for this event")

    event = get_collection("all_events").find_one(
        {"event_id": event_id},
        {"_id": 0, "total_participants_allowed": 1, "registration_type": 1},
    )
    if event is None:
        raise NotFound("Event not found")

    team_name = (team_name or "").strip() or None
    if event.get("registration_type") == "team":
        if not team_name:
            raise InvalidInput("Team name is required for team events")
        if registration_type != "team":
            raise InvalidInput('Registration type must be "team" for team events')
    else:
        if registration_type and registration_type != "individual":
            raise InvalidInput('Registration type must be "individual" for individual events')
        registration_type = "individual"
        team_name = None

    if not reserve_seat(event_id, to_number(event.get("total_participants_allowed"))):
        raise InvalidInput("Event is full. No more registrations allowed.")

    try:
        row = _registration_row(event_id, registration_type, team_name)
        member = {"id": next_id("registration_members"), "registration_id": row["registration_id"],
                  "participant_id": profile_id}
        get_collection("registration_members").insert_one(member)
    except DuplicateKeyError:
        release_seat(event_id)
        raise Conflict("Participant is already registered for this event")
    except PyMongoError:
        release_seat(event_id)
        raise

    _bump("participants_profile", {"profile_id": profile_id}, "registered_events_count")
    logger.info("Registered profile %s for event %s (%s)", profile_id, event_id, registration_type)

    return {
        "message": "Participant registered successfully for event",
        "registration_id": row["registration_id"],
        "member_id": member["id"],
        "event_id": event_id,
        "user_id": user_id,
        "profile_id": profile_id,
        "registration_type": registration_type,
        "team_name": team_name,
    }


def registered_users(event_id: int) -> List[Dict]:
    regs = _event_registrations(event_id)
    if not regs:
        return []
    members = list(
        get_collection("registration_members").find(
            {"registration_id": {"$in": [r["registration_id"] for r in regs]}},
            {"_id": 0, "participant_id": 1},
        )
    )
    ids = [m["participant_id"] for m in members]
    names = {
        p["profile_id"]: p.get("name")
        for p in get_collection("participants_profile").find(
            {"profile_id": {"$in": ids}}, {"_id": 0, "profile_id": 1, "name": 1}
        )
    }
    return [{"profile_id": pid, "username": names.get(pid) or f"user_{pid}"} for pid in ids]


def profile_registrations(profile_id: str) -> List[Dict]:
    """Registration rows (type, team name, event) the profile is a member of."""
    reg_ids = [
        m["registration_id"]
        for m in get_collection("registration_members").find(
            {"participant_id": profile_id}, {"_id": 0, "registration_id": 1}
        )
    ]
    if not reg_ids:
        return []
    return list(get_collection("registrations").find({"registration_id": {"$in": reg_ids}}, {"_id": 0}))


def registered_events(user_id: str) -> List[Dict]:
    profile_id = resolve_profile(user_id)["profile_id"]
    regs = profile_registrations(profile_id)
    event_ids = sorted({r["event_id"] for r in regs})
    if not event_ids:
        return []
    cur = get_collection("all_events").find({"event_id": {"$in": event_ids}}, SUMMARY_FIELDS).sort("event_id", 1)
    return [event_summary(ev) for ev in cur]
