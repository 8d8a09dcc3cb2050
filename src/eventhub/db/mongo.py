from __future__ import annotations

import os
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.server_api import ServerApi

# Always go through eventhub.config so python-dotenv is applied
from eventhub import config
from eventhub.errors import StoreError

_CLIENT: Optional[MongoClient] = None

COLLECTIONS = (
    "all_events",
    "event_admin_access",
    "participants_profile",
    "registrations",
    "registration_members",
    "wishlisted_events",
    "past_events",
)


def _mongo_uri() -> str:
    # Prefer config (loads .env), fallback to raw env
    uri = getattr(config, "MONGODB_URI", None) or os.getenv("MONGODB_URI")
    if not uri:
        raise StoreError("Database not configured properly")
    return uri


def _db_name() -> str:
    name = getattr(config, "MONGO_DB", None) or os.getenv("MONGO_DB") or "eventhub"
    return name


def get_client() -> MongoClient:
    global _CLIENT
    if _CLIENT is not None:
        return _CLIENT
    uri = _mongo_uri()
    _CLIENT = MongoClient(uri, serverSelectionTimeoutMS=5000, server_api=ServerApi("1"))
    return _CLIENT


def get_db():
    return get_client()[_db_name()]


def get_collection(name: str):
    return get_db()[name]


def ping() -> bool:
    try:
        get_db().command("ping")
        return True
    except Exception as e:
        logging.error("Mongo ping failed: %s", e)
        return False


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def next_id(sequence: str) -> int:
    """
    Allocate the next integer id for `sequence` with a single atomic $inc.
    """
    doc = get_collection("counters").find_one_and_update(
        {"_id": sequence},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(doc["seq"])


def strip_id(doc: Optional[Dict]) -> Optional[Dict]:
    """Drop Mongo's ObjectId so the document is JSON-serialisable."""
    if doc is None:
        return None
    doc.pop("_id", None)
    return doc


def ensure_indexes(logger: Optional[logging.Logger] = None) -> None:
    """
    Safe to call on startup; creates lookup and uniqueness indexes if they don't exist.
    """
    try:
        db = get_db()
    except Exception as e:
        (logger or logging).warning("[ensure_indexes] skipped: %s", e)
        return

    idx = [
        ("all_events", [("event_id", ASCENDING)], {"unique": True}),
        ("all_events", [("event_name", ASCENDING)], {}),
        ("all_events", [("end_date", ASCENDING)], {}),
        # sparse: a request is claimed first and numbered right after
        ("event_admin_access", [("id", ASCENDING)], {"unique": True, "sparse": True}),
        ("event_admin_access", [("admin_id", ASCENDING), ("requested_at", DESCENDING)], {}),
        # at most one pending request per admin
        ("event_admin_access", [("admin_id", ASCENDING)],
         {"unique": True, "partialFilterExpression": {"status": "pending"}, "name": "one_pending_per_admin"}),
        ("participants_profile", [("user_id", ASCENDING)], {"unique": True}),
        ("participants_profile", [("profile_id", ASCENDING)], {"unique": True}),
        ("registrations", [("event_id", ASCENDING)], {}),
        ("registration_members", [("registration_id", ASCENDING), ("participant_id", ASCENDING)], {"unique": True}),
        ("registration_members", [("participant_id", ASCENDING)], {}),
        ("wishlisted_events", [("event_id", ASCENDING), ("user_id", ASCENDING)], {"unique": True}),
        ("past_events", [("event_id", ASCENDING)], {"unique": True}),
    ]
    for coll, keys, opts in idx:
        try:
            db[coll].create_index(keys, **opts)
        except Exception as e:
            (logger or logging).warning("index create failed for %s: %s", coll, e)
