from __future__ import annotations

from flask import Blueprint, jsonify, request

from eventhub.api import json_body
from eventhub.services import access

bp = Blueprint("api_access_requests", __name__)


@bp.post("/access-requests")
def submit_request():
    """
    POST /api/access-requests  {"eventName": "...", "adminUserId": "..."}
    One pending request per admin; a second one is rejected with 409.
    """
    data = json_body()
    created = access.submit_request(data.get("adminUserId"), data.get("eventName"))
    return jsonify({"success": True, "request": created})


@bp.get("/access-requests")
def list_requests():
    """
    GET /api/access-requests?status=pending|approved|rejected
    """
    return jsonify({"requests": access.list_requests(request.args.get("status"))})


@bp.get("/access-requests/<int:request_id>")
def get_request(request_id: int):
    return jsonify({"request": access.get_request(request_id)})


@bp.patch("/access-requests/<int:request_id>")
def decide_request(request_id: int):
    """
    PATCH /api/access-requests/<id>  {"status": "approved" | "rejected"}
    Approval creates a skeleton event named after the request.
    """
    result = access.decide_request(request_id, json_body().get("status"))
    return jsonify({"success": True, **result})


@bp.get("/access-requests/check-access")
def check_access():
    """
    GET /api/access-requests/check-access?adminUserId=...
    hasAccess stays true only while the approved event is still a skeleton.
    """
    return jsonify(access.check_access(request.args.get("adminUserId")))


@bp.get("/access-requests/my-latest")
def my_latest():
    return jsonify({"latest": access.latest_request(request.args.get("adminUserId"))})
