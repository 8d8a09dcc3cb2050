"""
HTTP client for the eventhub API with an explicit, non-authoritative cache.

The cache only mirrors two read models the UI shows repeatedly: the events an
admin has posted, and the registrants of an event. A view calls `on_mount()`
when it appears, which drops everything cached so the next read refetches.
Server responses always replace cached values.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


@dataclass
class ClientCache:
    posted_events: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    registrants: Dict[int, List[Dict[str, Any]]] = field(default_factory=dict)

    def invalidate(self) -> None:
        self.posted_events.clear()
        self.registrants.clear()

    def invalidate_event(self, event_id: int) -> None:
        self.registrants.pop(event_id, None)


class ApiClientError(RuntimeError):
    def __init__(self, status: int, message: str):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


class EventHubClient:
    def __init__(self, base_url: str, timeout: int = 30, cache: Optional[ClientCache] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache or ClientCache()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/api/{path.lstrip('/')}"
        try:
            r = requests.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Request to %s failed: %s", url, e)
            raise ApiClientError(0, str(e)) from e

        try:
            body = r.json() or {}
        except ValueError:
            # proxies answer errors with HTML
            body = None

        if r.status_code >= 400:
            message = body.get("error") if isinstance(body, dict) else None
            raise ApiClientError(r.status_code, message or "request failed")
        if not isinstance(body, dict):
            raise ApiClientError(r.status_code, "response is not a JSON object")
        return body

    def on_mount(self) -> None:
        """Drop cached mirrors; the next read goes to the server."""
        self.cache.invalidate()

    def posted_events(self, admin_id: str, refresh: bool = False) -> List[Dict[str, Any]]:
        if not refresh and admin_id in self.cache.posted_events:
            return self.cache.posted_events[admin_id]
        events = self._get("/events", {"adminId": admin_id}).get("events", [])
        self.cache.posted_events[admin_id] = events
        return events

    def registrants(self, event_id: int, refresh: bool = False) -> List[Dict[str, Any]]:
        if not refresh and event_id in self.cache.registrants:
            return self.cache.registrants[event_id]
        users = self._get("/participants/registered-users", {"event_id": event_id}).get("users", [])
        self.cache.registrants[event_id] = users
        return users
