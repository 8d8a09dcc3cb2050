from __future__ import annotations

import uuid
from typing import Dict, Optional

from pymongo import ReturnDocument

from eventhub import config
from eventhub.db.mongo import get_collection, now_iso, strip_id
from eventhub.errors import InvalidInput, NotFound
from eventhub.external.identity import fetch_account
from eventhub.utils.fields import require, to_number

PROFILE_FIELDS = ("user_id", "name", "college_name", "department", "register_number", "year")


def find_profile(user_id: str) -> Optional[Dict]:
    return get_collection("participants_profile").find_one({"user_id": user_id}, {"_id": 0})


def resolve_profile(user_id: str) -> Dict:
    """Map an account id to its participant profile, or NotFound."""
    profile = find_profile(user_id)
    if profile is None:
        raise NotFound("User profile not found. Please complete your profile first or contact support.")
    return profile


def get_profile(user_id: str) -> Dict:
    profile = find_profile(user_id)
    account = fetch_account(user_id)

    email = account.get("email") if account else None
    username = (
        (account or {}).get("full_name")
        or (email.split("@")[0] if email else None)
        or (profile or {}).get("name")
        or "User"
    )
    return {
        "profile": profile,
        "user": {"email": email, "username": username},
        "id_mapping": {
            "profile_id": (profile or {}).get("profile_id"),
            "user_id": user_id,
        },
    }


def save_profile(data: Dict) -> Dict:
    require(
        data,
        PROFILE_FIELDS,
        "All fields are required: user_id, name, college_name, department, register_number, year",
    )
    year = to_number(data["year"])
    low, high = config.PROFILE_YEAR_RANGE
    if not isinstance(year, int) or not low <= year <= high:
        raise InvalidInput(f"Year must be between {low} and {high}")

    user_id = data["user_id"]
    editable = {
        "name": str(data["name"]).strip(),
        "college_name": data["college_name"],
        "department": data["department"],
        "register_number": str(data["register_number"]),
        "year": year,
    }

    coll = get_collection("participants_profile")
    updated = coll.find_one_and_update(
        {"user_id": user_id},
        {"$set": {**editable, "updated_at": now_iso()}},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    if updated is not None:
        action = "updated"
        profile = updated
    else:
        action = "created"
        profile = {
            "profile_id": str(uuid.uuid4()),
            "user_id": user_id,
            **editable,
            "registered_events_count": 0,
            "won_events_count": 0,
            "wishlisted_events_count": 0,
            "created_at": now_iso(),
            "updated_at": None,
        }
        coll.insert_one(profile)
        strip_id(profile)

    return {
        "profile": profile,
        "action": action,
        "id_mapping": {"profile_id": profile.get("profile_id"), "user_id": user_id},
    }
