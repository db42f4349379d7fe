from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.web import lecturer_required, login_required
from ..container import Container
from ..core.constants import ALL_FILTER
from ..core.enums import Role
from ..reports.service import StudentDashboard
from ..sessions.model import session_to_dict
from .model import MarkResult, ScanHistoryEntry
from .reconciler import AttendanceStats


def _stats_dict(stats: AttendanceStats) -> dict:
    return {
        "present": stats.present,
        "total": stats.total,
        "percent": stats.percent,
        "perfect": stats.is_perfect,
        "label": stats.label(),
    }


def _mark_dict(result: MarkResult) -> dict:
    return {
        "success": True,
        "status": result.status.value,
        "person_id": result.person_id,
        "name": result.name,
        "time": result.time,
        "message": result.message,
    }


def _history_dict(entry: ScanHistoryEntry) -> dict:
    return {
        "name": entry.name,
        "identifier": entry.identifier,
        "photo_url": entry.photo_url,
        "time": entry.time,
        "timestamp": entry.timestamp.isoformat() if entry.timestamp else None,
    }


def _student_dashboard_dict(data: StudentDashboard) -> dict:
    return {
        "success": True,
        "person_id": data.person_id,
        "subjects": data.subjects,
        "stats": _stats_dict(data.stats),
        "sessions": [
            {
                **session_to_dict(r.session),
                "present": r.present,
                "recorded_at": r.recorded_at.isoformat() if r.recorded_at else None,
            }
            for r in data.rows
        ],
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sessions/<session_id>/scan", methods=["POST"], endpoint="scan_card")
    @lecturer_required
    def scan_card(session_id: str):
        result = container.attendance_service.scan_card(session_id, container.reader)
        return jsonify(_mark_dict(result)), (201 if result.created else 200)

    @app.route("/api/sessions/<session_id>/attendees", methods=["POST"], endpoint="mark_attendance")
    @lecturer_required
    def mark_attendance(session_id: str):
        data = request.get_json(silent=True) or {}
        result = container.attendance_service.mark_attendance(session_id, str(data.get("identifier", "")).strip())
        return jsonify(_mark_dict(result)), (201 if result.created else 200)

    @app.route("/api/sessions/<session_id>/history", endpoint="scan_history")
    @login_required
    def scan_history(session_id: str):
        entries = container.attendance_service.recent_history(session_id)
        return jsonify({"success": True, "history": [_history_dict(e) for e in entries]})

    @app.route("/api/dashboard/lecturer", endpoint="lecturer_dashboard")
    @lecturer_required
    def lecturer_dashboard():
        data = container.lecturer_dashboard_service.build(
            filter_subject=request.args.get("subject", ALL_FILTER),
            filter_lecturer=request.args.get("lecturer", ALL_FILTER),
            sort_by=request.args.get("sort", "Date"),
        )
        return jsonify(
            {
                "success": True,
                "subjects": data.subjects,
                "lecturers": data.lecturers,
                "groups": [
                    {
                        "subject": r.group.subject,
                        "sessions": [session_to_dict(s) for s in r.group.sessions],
                        "roster": [
                            {"person_id": s.person_id, "name": s.name, **_stats_dict(s.stats)} for s in r.roster
                        ],
                    }
                    for r in data.groups
                ],
            }
        )

    @app.route("/api/dashboard/student", endpoint="student_dashboard")
    @login_required
    def student_dashboard():
        data = container.student_dashboard_service.build(
            session["person_id"],
            filter_subject=request.args.get("subject", ALL_FILTER),
            sort_by=request.args.get("sort", "Date"),
        )
        return jsonify(_student_dashboard_dict(data))

    @app.route("/api/students/<person_id>/stats", methods=["POST"], endpoint="student_stats")
    @login_required
    def student_stats(person_id: str):
        if session.get("role") != Role.LECTURER.value and session.get("person_id") != person_id:
            return jsonify({"success": False, "message": "Not allowed."}), 403
        data = request.get_json(silent=True) or {}
        stats = container.reconciler.stats_for(person_id, list(data.get("session_ids") or []))
        return jsonify({"success": True, "person_id": person_id, **_stats_dict(stats)})
