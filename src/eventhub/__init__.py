import logging
import time

from flask import Flask, g, request
from flask_cors import CORS


def create_app() -> Flask:
    from eventhub import config
    from eventhub.errors import register_error_handlers

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.SECRET_KEY
    CORS(app, origins=config.CORS_ORIGINS)
    register_error_handlers(app)

    @app.before_request
    def start_request_timer():
        g.request_start_time = time.perf_counter()

    @app.after_request
    def log_request_time(response):
        start_time = getattr(g, "request_start_time", None)
        if start_time is not None:
            duration_ms = (time.perf_counter() - start_time) * 1000
            app.logger.info(
                "Request %s %s took %.2fms, status %d",
                request.method,
                request.path,
                duration_ms,
                response.status_code,
            )
        return response

    # Ensure DB indexes early (safe to run multiple times)
    from eventhub.db.mongo import ensure_indexes
    ensure_indexes(app.logger)

    from eventhub.api import register_api
    register_api(app)

    return app
