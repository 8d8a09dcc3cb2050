from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from eventhub.errors import InvalidInput

logger = logging.getLogger(__name__)


def load_json(raw: Any, field: str = "value") -> Any:
    """Return `raw` decoded if it is JSON text, as-is otherwise; None if unreadable."""
    if not isinstance(raw, str):
        return raw
    if raw.strip() == "":
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        logger.warning("Failed to parse %s JSON: %s", field, e)
        return None


def decode_flexible(raw: Any, default: Any, field: str = "value") -> Any:
    """
    Stored JSON fields may be plain structures or JSON-encoded text.
    Both decode to the same shape; anything unreadable degrades to `default`.
    """
    raw = load_json(raw, field)
    if raw is None:
        return default
    if not isinstance(raw, type(default)):
        logger.warning("Unexpected %s shape: %s", field, type(raw).__name__)
        return default
    return raw


def to_number(value: Any) -> Optional[float | int]:
    """Coerce to a finite number (int when integral) or None."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(n):
        return None
    return int(n) if n.is_integer() else n


def parse_dt(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 date/datetime; naive values are taken as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_id(value: Any, name: str = "id") -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be an integer")


def require(data: Dict, fields: Iterable[str], message: Optional[str] = None) -> None:
    missing = [f for f in fields if data.get(f) in (None, "")]
    if missing:
        raise InvalidInput(message or f"Missing required fields: {', '.join(missing)}")
