from __future__ import annotations

import hmac
import logging

from flask import Flask, jsonify, request

from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/scheduler", methods=["GET"], endpoint="scheduler_status")
    def scheduler_status():
        expected = str(app.config.get("CRON_SECRET") or "")
        given = request.headers.get("X-Cron-Secret", "")
        if not expected or not hmac.compare_digest(given.encode(), expected.encode()):
            return jsonify({"error": "Unauthorized"}), 401

        planner = container.planner
        try:
            # first call plans every user and starts the background scheduler
            if not planner.started:
                planner.initialize_all()
                planner.start()
            return jsonify({"message": "Scheduler is running", **planner.status()})
        except Exception:
            logger.exception("Scheduler initialization failed")
            return jsonify({"error": "Failed to initialize scheduler"}), 500
