from __future__ import annotations

import importlib
from flask import Blueprint, request

API_MODULES = [
    "health",
    "access_requests",
    "events",
    "participants",
    "wishlist",
]

def register_api(app):
    api_bp = Blueprint("api", __name__, url_prefix="/api")

    for name in API_MODULES:
        mod_qualname = f"{__name__}.{name}"
        mod = importlib.import_module(mod_qualname)

        bp = getattr(mod, "bp", None)
        if bp is None:
            app.logger.warning("Module %s has no `bp`; skipping", mod_qualname)
            continue
        api_bp.register_blueprint(bp)

    app.register_blueprint(api_bp)


def json_body() -> dict:
    """Request JSON as a dict; anything else counts as an empty body."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
