from __future__ import annotations

import logging

from flask import Flask, g, jsonify, request, session

from ..common.web import lecturer_required, login_required
from ..container import Container
from ..core.enums import AuthState, Role
from ..core.exceptions import AuthorizationError
from .auth_state import AuthStateMachine
from .model import UserProfile

logger = logging.getLogger(__name__)


def profile_to_dict(profile: UserProfile) -> dict:
    return {
        "person_id": profile.person_id,
        "name": profile.name,
        "email": profile.email,
        "role": profile.role.value,
        "ic": profile.ic,
        "matric_no": profile.matric_no,
        "staff_number": profile.staff_number,
        "photo_url": profile.photo_url,
        "must_change_password": profile.must_change_password,
        "warnings": list(profile.warnings),
    }


def register(app: Flask, container: Container) -> None:
    @app.before_request
    def load_auth_state():
        machine = AuthStateMachine(container.users_repo.get_by_email)
        machine.on_auth_changed(session.get("email"))
        g.auth = machine.snapshot

    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = request.get_json(silent=True) or {}
        identifier = str(data.get("identifier", "")).strip()
        password = str(data.get("password", ""))

        user = container.auth_service.sign_in_with_identifier(identifier, password)
        try:
            landing = container.auth_service.landing_for(user)
        except AuthorizationError:
            session.clear()
            raise

        session.clear()
        session["person_id"] = user.person_id
        session["email"] = user.email
        session["role"] = user.role.value
        session["name"] = user.name
        return jsonify({"success": True, "landing": landing, "profile": profile_to_dict(user)})

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/me", endpoint="me")
    def me():
        snapshot = g.auth
        body = {"success": True, "state": snapshot.state.value, "email": snapshot.email}
        if snapshot.state == AuthState.AUTHENTICATED and snapshot.profile:
            body["profile"] = profile_to_dict(snapshot.profile)
        return jsonify(body)

    @app.route("/api/me/password", methods=["POST"], endpoint="change_password")
    @login_required
    def change_password():
        data = request.get_json(silent=True) or {}
        container.auth_service.change_password(session["person_id"], str(data.get("new_password", "")))
        return jsonify({"success": True, "message": "Password updated"})

    @app.route("/api/password/reset-request", methods=["POST"], endpoint="request_password_reset")
    def request_password_reset():
        data = request.get_json(silent=True) or {}
        container.password_reset_service.request_reset(str(data.get("identifier", "")).strip())
        return jsonify({"success": True, "message": "Check your email for the link to set your password."})

    @app.route("/api/password/reset", methods=["POST"], endpoint="reset_password")
    def reset_password():
        data = request.get_json(silent=True) or {}
        container.password_reset_service.reset_password(
            str(data.get("token", "")), str(data.get("new_password", ""))
        )
        session.clear()
        return jsonify({"success": True, "message": "Password updated. Please sign in."})

    @app.route("/api/students", endpoint="list_students")
    @lecturer_required
    def list_students():
        students = container.users_repo.list_by_role(Role.STUDENT)
        return jsonify({"success": True, "students": [profile_to_dict(s) for s in students]})

    @app.route("/api/students/<person_id>/warnings", methods=["POST"], endpoint="send_warning")
    @lecturer_required
    def send_warning(person_id: str):
        warning = container.warning_service.send_warning(person_id)
        return jsonify({"success": True, "warning": warning})
