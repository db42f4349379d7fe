from __future__ import annotations

from dataclasses import replace
from datetime import date

from src.nfc_attendance.nfc_attendance.attendance.reconciler import AttendanceReconciler
from src.nfc_attendance.nfc_attendance.reports.service import LecturerDashboardService, StudentDashboardService
from src.nfc_attendance.nfc_attendance.sessions.service import SessionService

from tests.fakes import InMemorySessions


def _sessions(cs101_lecture):
    cs101_lab = replace(cs101_lecture, session_id="20250304_CS101_Laboratory", date=date(2025, 3, 4))
    cs204 = replace(
        cs101_lecture, session_id="20250305_CS204_Lecture", subject="CS204", lecturer="Mr Tan", date=date(2025, 3, 5)
    )
    other = replace(cs101_lecture, session_id="20250306_MATH_Exam", subject="MATH", date=date(2025, 3, 6))
    return InMemorySessions([cs101_lecture, cs101_lab, cs204, other])


def test_lecturer_dashboard_groups_and_rosters(cs101_lecture, users, attendance_repo):
    repo = _sessions(cs101_lecture)
    attendance_repo.upsert_marker(session_id="20250303_CS101_Lecture", person_id="student_demo", time_str="08:05")
    service = LecturerDashboardService(SessionService(repo, users), users, AttendanceReconciler(attendance_repo))

    data = service.build(filter_subject="CS101")

    assert [g.group.subject for g in data.groups] == ["CS101"]
    roster = data.groups[0].roster
    assert [(r.person_id, r.stats.present, r.stats.total) for r in roster] == [("student_demo", 1, 2)]
    assert roster[0].stats.percent == 50
    assert data.subjects == ["CS101", "CS204", "MATH"]
    assert data.lecturers == ["Dr. Aminah", "Mr Tan"]


def test_lecturer_dashboard_filter_by_lecturer(cs101_lecture, users, attendance_repo):
    service = LecturerDashboardService(
        SessionService(_sessions(cs101_lecture), users), users, AttendanceReconciler(attendance_repo)
    )

    data = service.build(filter_lecturer="Mr Tan", sort_by="Subject")

    assert [g.group.subject for g in data.groups] == ["CS204"]


def test_student_dashboard_only_enrolled_subjects(cs101_lecture, users, attendance_repo, fixed_now):
    attendance_repo.upsert_marker(session_id="20250303_CS101_Lecture", person_id="student_demo", time_str="08:05")
    service = StudentDashboardService(SessionService(_sessions(cs101_lecture), users), users, attendance_repo)

    data = service.build("student_demo")

    ids = [r.session.session_id for r in data.rows]
    assert ids == ["20250305_CS204_Lecture", "20250304_CS101_Laboratory", "20250303_CS101_Lecture"]
    present = {r.session.session_id: r for r in data.rows if r.present}
    assert list(present) == ["20250303_CS101_Lecture"]
    assert present["20250303_CS101_Lecture"].recorded_at == fixed_now
    assert (data.stats.present, data.stats.total, data.stats.percent) == (1, 3, 33)


def test_student_dashboard_subject_filter_and_sort(cs101_lecture, users, attendance_repo):
    service = StudentDashboardService(SessionService(_sessions(cs101_lecture), users), users, attendance_repo)

    data = service.build("student_demo", filter_subject="CS101", sort_by="Subject")

    assert [r.session.session_id for r in data.rows] == ["20250303_CS101_Lecture", "20250304_CS101_Laboratory"]
    assert data.stats.total == 2
    assert data.stats.percent == 0


def test_student_dashboard_reads_markers_in_one_query(cs101_lecture, users, attendance_repo):
    attendance_repo.upsert_marker(session_id="20250304_CS101_Laboratory", person_id="student_demo", time_str="10:02")
    service = StudentDashboardService(SessionService(_sessions(cs101_lecture), users), users, attendance_repo)

    data = service.build("student_demo")

    assert attendance_repo.queries == ["markers"]
    assert [r.session.session_id for r in data.rows if r.present] == ["20250304_CS101_Laboratory"]
