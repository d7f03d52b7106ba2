from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request, session

from ..core.exceptions import AuthenticationError, ValidationError
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

    def _server_error(e: Exception, what: str):
        logger.exception("Failed to %s", what)
        if bool(app.config.get("DEBUG", False)):
            return jsonify({"error": f"Failed to {what}: {e}"}), 500
        return jsonify({"error": f"Failed to {what}"}), 500

    def _start_session(s_user) -> None:
        session.clear()
        session["user_id"] = s_user.user_id
        session["username"] = s_user.username
        session["name"] = s_user.display_name

    @app.route("/api/auth/signup", methods=["POST"], endpoint="signup")
    def signup():
        body = request.get_json(silent=True) or {}
        try:
            s_user = container.auth_service.signup(
                username=body.get("username", ""),
                password=body.get("password", ""),
                portal_username=body.get("portalUsername", ""),
                portal_secret=body.get("portalPassword", ""),
                display_name=body.get("displayName"),
            )
            _start_session(s_user)
            return jsonify({
                "message": "User created successfully",
                "user": {"id": s_user.user_id, "username": s_user.username},
            })
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except Exception as e:
            return _server_error(e, "create user")

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = request.get_json(silent=True) or {}
        try:
            s_user = container.auth_service.authenticate(body.get("username", ""), body.get("password", ""))
            _start_session(s_user)
            return jsonify({
                "message": "Login successful",
                "user": {"id": s_user.user_id, "username": s_user.username},
            })
        except AuthenticationError as e:
            return jsonify({"error": str(e)}), 401
        except Exception as e:
            return _server_error(e, "log in")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"message": "Logged out"})

    @app.route("/api/user/preferences", methods=["GET"], endpoint="get_preferences")
    @login_required
    def get_preferences():
        try:
            return jsonify(container.preference_service.get_preferences(int(session["user_id"])))
        except ValidationError as e:
            return jsonify({"error": str(e)}), 404
        except Exception as e:
            return _server_error(e, "get preferences")

    @app.route("/api/user/preferences", methods=["PUT"], endpoint="update_preferences")
    @login_required
    def update_preferences():
        body = request.get_json(silent=True) or {}
        try:
            return jsonify(container.preference_service.update_preferences(int(session["user_id"]), body))
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except Exception as e:
            return _server_error(e, "update preferences")
