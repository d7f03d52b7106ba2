from __future__ import annotations

import hmac
import logging
from functools import wraps

from flask import Flask, jsonify, request, session

from ..core.enums import Action
from ..core.exceptions import ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"error": "Unauthorized"}), 401
            return view(*args, **kwargs)

        return wrapper

    def cron_secret_required(view):
        """Sweep trigger auth: shared secret in X-Cron-Secret, separate from user sessions."""

        @wraps(view)
        def wrapper(*args, **kwargs):
            expected = str(app.config.get("CRON_SECRET") or "")
            given = request.headers.get("X-Cron-Secret", "")
            if not expected or not hmac.compare_digest(given.encode(), expected.encode()):
                return jsonify({"error": "Unauthorized"}), 401
            return view(*args, **kwargs)

        return wrapper

    @app.route("/api/attendance/check", methods=["GET", "POST"], endpoint="attendance_check")
    @cron_secret_required
    def attendance_check():
        try:
            summary = container.attendance_service.run_sweep()
            payload = summary.to_dict()
            payload["message"] = (
                f"Checked {summary.users_scanned} users, processed {summary.actions_processed} attendance actions"
            )
            return jsonify(payload)
        except Exception:
            logger.exception("Sweep failed")
            return jsonify({"error": "Failed to check attendance"}), 500

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @login_required
    def attendance_mark():
        body = request.get_json(silent=True) or {}
        try:
            action = Action.parse(str(body.get("action", "")))
        except ValueError:
            return jsonify({"error": "Invalid action. Must be clock-in or clock-out"}), 400

        try:
            result = container.attendance_service.trigger(int(session["user_id"]), action)
            return jsonify(result.to_dict())
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except Exception:
            logger.exception("Manual %s failed", action.value)
            return jsonify({"error": "Failed to mark attendance"}), 500

    @app.route("/api/user/logs", methods=["GET"], endpoint="user_logs")
    @login_required
    def user_logs():
        try:
            return jsonify({"logs": container.attendance_service.recent_logs(int(session["user_id"]))})
        except Exception:
            logger.exception("Failed to read attendance logs")
            return jsonify({"error": "Failed to get attendance logs"}), 500
