from __future__ import annotations

import logging
from typing import Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from eventhub.analytics.winners import decode_winners, match_win, parse_winners
from eventhub.db.mongo import get_collection, next_id, now_iso
from eventhub.errors import Conflict, Forbidden, InvalidInput
from eventhub.services.events import SUMMARY_FIELDS, event_summary
from eventhub.services.profiles import resolve_profile
from eventhub.services.registrations import find_membership, profile_registrations
from eventhub.utils.fields import decode_flexible, load_json

logger = logging.getLogger(__name__)


def _record(event_id: int) -> Optional[Dict]:
    return get_collection("past_events").find_one({"event_id": event_id}, {"_id": 0})


def _feedback(raw) -> List[Dict]:
    entries = decode_flexible(raw, [], "students_feedback")
    return [e for e in entries if isinstance(e, dict)]


def get_details(event_id: int) -> Dict:
    rec = _record(event_id)
    if rec is None:
        return {"isPastEvent": False, "message": "Event not found in past events"}

    return {
        "isPastEvent": True,
        "pastEvent": {
            "event_id": rec["event_id"],
            "photos": decode_flexible(rec.get("photos"), [], "photos"),
            "winners": decode_winners(rec.get("winners")).to_json(),
            "event_details": rec.get("event_details"),
            "students_feedback": _feedback(rec.get("students_feedback")),
        },
    }


def _clean_updates(data: Dict) -> Dict:
    updates: Dict = {}
    if "photos" in data:
        photos = load_json(data["photos"], "photos")
        if not isinstance(photos, list):
            raise InvalidInput("photos must be a list")
        updates["photos"] = photos
    if "winners" in data:
        winners = parse_winners(data["winners"])
        if winners is None:
            raise InvalidInput("winners must be a list or an object with individual_winners/team_winners")
        updates["winners"] = winners.to_json()
    if "event_details" in data:
        updates["event_details"] = data["event_details"]
    return updates


def save_details(event_id: int, data: Dict) -> Dict:
    """
    Upsert the post-event record. Only supplied fields are written; the rest
    stay as they are.
    """
    updates = _clean_updates(data)
    coll = get_collection("past_events")

    if _record(event_id) is not None:
        if updates:
            coll.update_one({"event_id": event_id}, {"$set": updates})
        action = "updated"
    else:
        doc = {
            "past_event_id": next_id("past_events"),
            "event_id": event_id,
            "photos": [],
            "winners": [],
            "event_details": None,
            "students_feedback": [],
            **updates,
        }
        try:
            coll.insert_one(doc)
        except DuplicateKeyError:
            raise Conflict("Past event record was created concurrently; retry")
        action = "created"

    logger.info("Past event details %s for event %s (%s)", action, event_id, ", ".join(updates) or "no fields")
    return {"action": action, "pastEvent": get_details(event_id)["pastEvent"]}


def add_feedback(event_id: int, participant_id: str, text: str) -> Dict:
    if not participant_id or not text:
        raise InvalidInput("Event ID, participant ID, and feedback text are required")
    if find_membership(event_id, participant_id) is None:
        raise Forbidden("Participant is not registered for this event")

    entry = {"participant_id": participant_id, "feedback": text, "timestamp": now_iso()}
    coll = get_collection("past_events")
    rec = _record(event_id)

    if rec is None:
        feedback = [entry]
        coll.insert_one({
            "past_event_id": next_id("past_events"),
            "event_id": event_id,
            "photos": [],
            "winners": [],
            "event_details": None,
            "students_feedback": feedback,
        })
        return {"message": "Feedback added successfully", "feedback": feedback}

    feedback = _feedback(rec.get("students_feedback"))
    replaced = False
    for i, fb in enumerate(feedback):
        if fb.get("participant_id") == participant_id:
            feedback[i] = entry
            replaced = True
            break
    if not replaced:
        feedback.append(entry)

    coll.update_one({"event_id": event_id}, {"$set": {"students_feedback": feedback}})
    message = "Feedback updated successfully" if replaced else "Feedback added successfully"
    return {"message": message, "feedback": feedback}


def won_events(user_id: str) -> List[Dict]:
    """
    Events the participant won, individually (display name among the winners)
    or through their team (team name among the winners).
    """
    profile = resolve_profile(user_id)
    display_name = profile.get("name")
    regs = profile_registrations(profile["profile_id"])
    if not regs:
        return []

    event_ids = sorted({r["event_id"] for r in regs})
    records = {
        rec["event_id"]: decode_winners(rec.get("winners"))
        for rec in get_collection("past_events").find(
            {"event_id": {"$in": event_ids}}, {"_id": 0, "event_id": 1, "winners": 1}
        )
    }

    wins: Dict[int, Dict] = {}
    for reg in regs:
        winners = records.get(reg["event_id"])
        if winners is None or reg["event_id"] in wins:
            continue
        won_as = match_win(winners, reg, display_name)
        if won_as:
            team_name = reg.get("team_name") if won_as == "team" else None
            wins[reg["event_id"]] = {"won_as": won_as, "team_name": team_name}

    if not wins:
        return []
    events = get_collection("all_events").find({"event_id": {"$in": sorted(wins)}}, SUMMARY_FIELDS).sort("event_id", 1)
    return [{**event_summary(ev), **wins[ev["event_id"]]} for ev in events]
