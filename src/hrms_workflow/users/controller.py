from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.auth import current_identity, login_required
from ..common.http import ok
from ..container import Container
from .service import user_payload


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def login():
        body = request.get_json(silent=True) or {}
        s_user = container.auth_service.authenticate(body.get("username", ""), body.get("password", ""))

        session.clear()
        session.permanent = bool(body.get("rememberMe"))
        app.permanent_session_lifetime = timedelta(days=7)

        session["user_id"] = s_user.user_id
        session["user_type"] = s_user.user_type.value
        session["name"] = s_user.full_name

        return ok(
            {
                "id": s_user.user_id,
                "fullName": s_user.full_name,
                "username": s_user.username,
                "userType": s_user.user_type.value,
            },
            message="Login successful",
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_logout")
    def logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="api_me")
    @login_required
    def me():
        user = container.user_service.get_profile(current_identity().user_id)
        return ok(user_payload(user))
