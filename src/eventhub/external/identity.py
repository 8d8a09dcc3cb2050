# eventhub/external/identity.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from eventhub import config
from eventhub.errors import StoreError

logger = logging.getLogger(__name__)


def is_configured() -> bool:
    return bool(config.IDENTITY_API_BASE and config.IDENTITY_API_TOKEN)


def _get_headers() -> Dict[str, str]:
    """Identity-provider service auth header."""
    if not config.IDENTITY_API_TOKEN:
        raise StoreError("IDENTITY_API_TOKEN is not set")
    return {
        "Authorization": f"Bearer {config.IDENTITY_API_TOKEN}",
        "apikey": config.IDENTITY_API_TOKEN,
    }


def _make_request(path: str) -> Dict[str, Any]:
    """GET wrapper; transport and HTTP failures surface as StoreError."""
    base = (config.IDENTITY_API_BASE or "").rstrip("/")
    url = f"{base}/{path.lstrip('/')}"
    try:
        r = requests.get(url, headers=_get_headers(), timeout=config.IDENTITY_TIMEOUT)
        r.raise_for_status()
        return r.json() or {}
    except requests.RequestException as e:
        logger.error("Identity provider call failed for %s: %s", url, e)
        raise StoreError("Failed to fetch user data") from e


def fetch_account(user_id: str) -> Optional[Dict[str, Any]]:
    """
    Look up the account behind `user_id`.
    Returns {"email", "full_name"} or None when the provider is not configured.
    """
    if not is_configured():
        return None
    body = _make_request(f"/admin/users/{user_id}")
    # some deployments wrap the payload as {"user": {...}}
    user = body.get("user") if isinstance(body.get("user"), dict) else body
    meta = user.get("user_metadata") or {}
    return {"email": user.get("email"), "full_name": meta.get("full_name")}
