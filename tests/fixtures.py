from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from eventhub.db.mongo import get_collection, next_id


def iso(days: float = 0) -> str:
    """UTC timestamp `days` away from now."""
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def seed_event(name: str = "Hackathon", **fields) -> Dict:
    doc = {
        "event_id": next_id("all_events"),
        "event_name": name,
        "description": "An event",
        "start_date": iso(1),
        "end_date": iso(2),
        "registered_no": 0,
        "total_participants_allowed": None,
        "registration_type": "individual",
    }
    doc.update(fields)
    get_collection("all_events").insert_one(doc)
    doc.pop("_id", None)
    return doc


def seed_profile(user_id: str = "auth-user-1", name: str = "bob") -> Dict:
    doc = {
        "profile_id": str(uuid.uuid4()),
        "user_id": user_id,
        "name": name,
        "college_name": "State College",
        "department": "CSE",
        "register_number": "REG001",
        "year": 2,
        "registered_events_count": 0,
        "won_events_count": 0,
        "wishlisted_events_count": 0,
    }
    get_collection("participants_profile").insert_one(doc)
    doc.pop("_id", None)
    return doc


def seed_registration(event_id: int, profile_id: str, registration_type: str = "individual",
                      team_name: Optional[str] = None) -> Dict:
    reg = {
        "registration_id": next_id("registrations"),
        "event_id": event_id,
        "registration_type": registration_type,
        "team_name": team_name,
        "registered_at": iso(),
    }
    get_collection("registrations").insert_one(reg)
    get_collection("registration_members").insert_one({
        "id": next_id("registration_members"),
        "registration_id": reg["registration_id"],
        "participant_id": profile_id,
    })
    reg.pop("_id", None)
    return reg


def seed_past_event(event_id: int, **fields) -> Dict:
    doc = {
        "past_event_id": next_id("past_events"),
        "event_id": event_id,
        "photos": [],
        "winners": [],
        "event_details": None,
        "students_feedback": [],
    }
    doc.update(fields)
    get_collection("past_events").insert_one(doc)
    doc.pop("_id", None)
    return doc
