from __future__ import annotations
import os
from datetime import datetime, timezone
from flask import Blueprint, jsonify

from eventhub import config
from eventhub.db.mongo import COLLECTIONS, get_collection, ping
from eventhub.external import identity

bp = Blueprint("api_health", __name__)

@bp.get("/health")
def health():
    db_ok = ping()
    now = datetime.now(timezone.utc).isoformat()

    return jsonify({
        "ok": True,
        "status": "ok",
        "env": os.getenv("FLASK_ENV", config.FLASK_ENV),
        "time_utc": now,
        "config": {
            "mongo_db": config.MONGO_DB,
            "cors_origins": config.CORS_ORIGINS,
            "identity_configured": identity.is_configured(),
        },
        "db": {
            "ping": db_ok,
        }
    })

@bp.get("/debug-counts")
def debug_counts():
    """
    Counts for core collections to quickly verify the data set.
    Safe even if collections are empty/missing.
    """
    def count(name: str) -> int:
        try:
            return get_collection(name).count_documents({})
        except Exception:
            return 0

    return jsonify({name: count(name) for name in COLLECTIONS})
