from __future__ import annotations

from flask import Flask, g, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from ..employees.serializers import user_to_dict


def register(app: Flask, container: Container) -> None:
    auth = container.auth_service

    def _body() -> dict:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        return body

    @app.post("/api/auth/register", endpoint="register")
    def register_user():
        body = _body()
        requested_role = body.get("role")
        if requested_role is not None and requested_role != Role.EMPLOYEE.value:
            raise ValidationError("Validation failed", ["Self-registration can only create EMPLOYEE accounts"])
        payload = auth.register(
            username=body.get("username", ""),
            email=body.get("email", ""),
            password=body.get("password", ""),
        )
        return jsonify({"success": True, "data": {"token": payload.token, "user": user_to_dict(payload.user)}}), 201

    @app.post("/api/auth/login", endpoint="login")
    def login():
        body = _body()
        payload = auth.login(body.get("username", ""), body.get("password", ""))

        session.clear()
        session["user_id"] = payload.user.user_id
        session["role"] = payload.user.role.value

        return jsonify({"success": True, "data": {"token": payload.token, "user": user_to_dict(payload.user)}})

    @app.post("/api/auth/logout", endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True, "message": "Logged out"})

    @app.get("/api/auth/me", endpoint="me")
    def me():
        user = auth.me(g.request_context.actor)
        return jsonify({"success": True, "data": user_to_dict(user)})
