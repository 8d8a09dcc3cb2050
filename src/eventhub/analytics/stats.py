from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from eventhub.db.mongo import get_collection
from eventhub.utils.fields import parse_dt, to_number


def classify_event(start: Optional[datetime], end: Optional[datetime], now: datetime) -> Optional[str]:
    """
    Bucket one event against `now`: "live" | "upcoming" | "past" | None.
    Events with no dates at all stay unclassified.
    """
    if start and end:
        if start <= now <= end:
            return "live"
        if start > now:
            return "upcoming"
        if end < now:
            return "past"
        return None
    if start:
        return "upcoming" if start > now else "past"
    if end:
        return "past" if end < now else None
    return None


def summarize_events(events: Iterable[Dict], now: Optional[datetime] = None) -> Dict[str, int]:
    now = now or datetime.now(timezone.utc)
    counts = {"live": 0, "upcoming": 0, "past": 0}
    total = 0
    participants = 0

    for ev in events:
        total += 1
        participants += int(to_number(ev.get("registered_no")) or 0)
        bucket = classify_event(parse_dt(ev.get("start_date")), parse_dt(ev.get("end_date")), now)
        if bucket:
            counts[bucket] += 1

    return {
        "totalEvents": total,
        "totalParticipants": participants,
        "liveEvents": counts["live"],
        "upcomingEvents": counts["upcoming"],
        "pastEvents": counts["past"],
    }


def event_stats(now: Optional[datetime] = None) -> Dict[str, int]:
    cur = get_collection("all_events").find(
        {}, {"_id": 0, "event_id": 1, "start_date": 1, "end_date": 1, "registered_no": 1}
    )
    return summarize_events(cur, now=now)
