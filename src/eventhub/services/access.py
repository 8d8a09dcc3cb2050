from __future__ import annotations

import logging
from typing import Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from eventhub import config
from eventhub.db.mongo import get_collection, next_id, now_iso, strip_id
from eventhub.errors import Conflict, InvalidInput, NotFound
from eventhub.services.events import is_skeleton

logger = logging.getLogger(__name__)


def submit_request(admin_id: str, event_name: str) -> Dict:
    """
    Create a pending access request. At most one pending request per admin:
    the pending check and the insert are a single upsert on that predicate,
    backed by a partial unique index on pending rows.
    """
    if not admin_id or not event_name:
        raise InvalidInput("eventName and adminUserId are required")

    coll = get_collection("event_admin_access")
    try:
        res = coll.update_one(
            {"admin_id": admin_id, "status": "pending"},
            {"$setOnInsert": {
                "event_name": event_name,
                "requested_at": now_iso(),
                "decided_at": None,
            }},
            upsert=True,
        )
    except DuplicateKeyError:
        # concurrent submit won the partial unique index on pending rows
        res = None
    if res is None or res.upserted_id is None:
        raise Conflict("A pending request already exists for your account.")

    # number the row only once the pending slot is ours
    new_id = next_id("event_admin_access")
    coll.update_one({"_id": res.upserted_id}, {"$set": {"id": new_id}})

    logger.info("Access request %s submitted by %s for %r", new_id, admin_id, event_name)
    return strip_id(coll.find_one({"id": new_id}, {"_id": 0}))


def _usernames(admin_ids: List[str]) -> Dict[str, str]:
    if not admin_ids:
        return {}
    cur = get_collection("users").find({"id": {"$in": admin_ids}}, {"_id": 0, "id": 1, "username": 1})
    return {u["id"]: u.get("username") for u in cur}


def list_requests(status: Optional[str] = None) -> List[Dict]:
    q: Dict = {}
    if status and status in config.ACCESS_STATUSES:
        q["status"] = status

    rows = list(
        get_collection("event_admin_access")
        .find(q, {"_id": 0})
        .sort([("requested_at", DESCENDING), ("id", DESCENDING)])
    )
    names = _usernames(sorted({r["admin_id"] for r in rows}))
    return [
        {
            "id": r.get("id"),
            "admin_id": r["admin_id"],
            "admin_username": names.get(r["admin_id"]),
            "status": r["status"],
            "requested_at": r.get("requested_at"),
            "reviewed_at": r.get("decided_at"),
            "event_name": r.get("event_name"),
        }
        for r in rows
    ]


def get_request(request_id: int) -> Dict:
    doc = get_collection("event_admin_access").find_one({"id": request_id}, {"_id": 0})
    if doc is None:
        raise NotFound("Access request not found")
    return doc


def _create_skeleton_event(event_name: str) -> Optional[int]:
    events = get_collection("all_events")
    # completed events with the same name (recurring events) still get a fresh skeleton
    pending_skeleton = {"event_name": event_name, "description": None, "start_date": None, "end_date": None}
    if events.find_one(pending_skeleton, {"_id": 1}) is not None:
        return None
    event_id = next_id("all_events")
    events.insert_one({
        "event_id": event_id,
        "event_name": event_name,
        "description": None,
        "start_date": None,
        "end_date": None,
        "registered_no": 0,
        "created_at": now_iso(),
    })
    return event_id


def decide_request(request_id: int, status: str) -> Dict:
    """
    pending -> approved | rejected, exactly once. Approval also creates a
    skeleton event for the requested name; if that fails the decision stands
    and the result carries a warning.
    """
    if status not in config.DECISION_STATUSES:
        raise InvalidInput("Invalid request data")

    coll = get_collection("event_admin_access")
    updated = coll.find_one_and_update(
        {"id": request_id, "status": "pending"},
        {"$set": {"status": status, "decided_at": now_iso()}},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        current = coll.find_one({"id": request_id}, {"_id": 0, "status": 1})
        if current is None:
            raise NotFound("Access request not found")
        raise Conflict(f"Request already {current['status']}")

    result: Dict = {"request": updated}
    if status == "approved" and updated.get("event_name"):
        try:
            event_id = _create_skeleton_event(updated["event_name"])
            result["skeleton_event_id"] = event_id
        except PyMongoError as e:
            logger.error("Skeleton event insert failed (non-fatal): %s", e)
            result["warning"] = "Request approved but the event placeholder could not be created"
    return result


def check_access(admin_id: str) -> Dict:
    if not admin_id:
        raise InvalidInput("Missing adminUserId")

    approved = list(
        get_collection("event_admin_access")
        .find({"admin_id": admin_id, "status": "approved"}, {"_id": 0, "id": 1, "event_name": 1, "decided_at": 1})
        .sort("decided_at", DESCENDING)
        .limit(1)
    )
    if not approved:
        return {"hasAccess": False}

    event_name = approved[0]["event_name"]
    rows = list(
        get_collection("all_events")
        .find({"event_name": event_name}, {"_id": 0})
        .sort("event_id", DESCENDING)
        .limit(1)
    )
    existing = rows[0] if rows else None
    has_access = existing is None or is_skeleton(existing)
    return {"hasAccess": has_access, "approvedEventName": event_name}


def latest_request(admin_id: str) -> Optional[Dict]:
    if not admin_id:
        raise InvalidInput("Missing adminUserId")
    rows = list(
        get_collection("event_admin_access")
        .find({"admin_id": admin_id}, {"_id": 0})
        .sort([("requested_at", DESCENDING), ("id", DESCENDING)])
        .limit(1)
    )
    return rows[0] if rows else None
