from __future__ import annotations

from datetime import date

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import parse_iso_date
from ..common.web import lecturer_required, login_required
from ..container import Container
from ..core.constants import ALL_FILTER
from ..core.exceptions import ValidationError
from .model import session_to_dict


def _parse_date(value) -> date:
    if not value:
        return date.today()
    try:
        return parse_iso_date(str(value))
    except ValueError as e:
        raise ValidationError("Date must be YYYY-MM-DD") from e


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sessions", methods=["POST"], endpoint="create_session")
    @lecturer_required
    def create_session():
        data = request.get_json(silent=True) or {}
        record = container.session_service.create_session(
            session_date=_parse_date(data.get("date")),
            subject=str(data.get("subject", "")),
            attendance_type=str(data.get("attendance_type", "")),
            start=str(data.get("start", "")),
            end=str(data.get("end", "")),
            sections=list(data.get("sections") or []),
            lecturer=str(data.get("lecturer") or session.get("name", "")),
        )
        return jsonify({"success": True, "session": session_to_dict(record)}), 201

    @app.route("/api/sessions/adhoc", methods=["POST"], endpoint="create_adhoc_session")
    @lecturer_required
    def create_adhoc_session():
        data = request.get_json(silent=True) or {}
        record = container.session_service.create_adhoc_session(
            subject=str(data.get("subject", "")),
            lecturer=str(data.get("lecturer", "")),
            session_date=_parse_date(data.get("date")),
        )
        return jsonify({"success": True, "session": session_to_dict(record)}), 201

    @app.route("/api/sessions", methods=["GET"], endpoint="list_sessions")
    @login_required
    def list_sessions():
        rows = container.session_service.list_sessions(
            subject=request.args.get("subject", ALL_FILTER),
            lecturer=request.args.get("lecturer", ALL_FILTER),
        )
        active = container.session_service.select_active(rows, request.args.get("active"))
        return jsonify(
            {
                "success": True,
                "sessions": [session_to_dict(s) for s in rows],
                "active": active.session_id if active else None,
            }
        )

    @app.route("/api/sessions/grouped", endpoint="grouped_sessions")
    @login_required
    def grouped_sessions():
        rows = container.session_service.list_sessions(
            subject=request.args.get("subject", ALL_FILTER),
            lecturer=request.args.get("lecturer", ALL_FILTER),
        )
        groups = container.session_service.group_by_subject(rows, request.args.get("sort", "Date"))
        return jsonify(
            {
                "success": True,
                "groups": [
                    {"subject": g.subject, "sessions": [session_to_dict(s) for s in g.sessions]} for g in groups
                ],
            }
        )

    @app.route("/api/sessions/<session_id>", endpoint="get_session")
    @login_required
    def get_session(session_id: str):
        record = container.session_service.get(session_id)
        if not record:
            return jsonify({"success": False, "message": "Session not found"}), 404
        return jsonify({"success": True, "session": session_to_dict(record)})

    @app.route("/api/lecturer/subjects", endpoint="lecturer_subjects")
    @lecturer_required
    def lecturer_subjects():
        subjects = container.session_service.subjects_for_lecturer(session["person_id"])
        return jsonify({"success": True, "subjects": subjects})

    @app.route("/api/lecturer/subjects/<subject>/sections", endpoint="lecturer_sections")
    @lecturer_required
    def lecturer_sections(subject: str):
        sections = container.session_service.sections_for_subject(session["person_id"], subject)
        return jsonify({"success": True, "subject": subject, "sections": sections})
