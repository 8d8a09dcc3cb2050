from __future__ import annotations

import logging

from flask import jsonify
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status = 500

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class InvalidInput(ApiError):
    status = 400


class Forbidden(ApiError):
    status = 403


class NotFound(ApiError):
    status = 404


class Conflict(ApiError):
    status = 409


class StoreError(ApiError):
    status = 500


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e: ApiError):
        if e.status >= 500:
            app.logger.error("%s: %s", type(e).__name__, e.message)
        return jsonify({"error": e.message}), e.status

    @app.errorhandler(PyMongoError)
    def handle_store_error(e: PyMongoError):
        # raw driver failures never reach the caller
        app.logger.error("Store call failed: %s", e, exc_info=True)
        return jsonify({"error": "Database operation failed"}), StoreError.status
