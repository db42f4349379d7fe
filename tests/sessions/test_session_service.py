from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from src.nfc_attendance.nfc_attendance.core.enums import AttendanceType, SortBy
from src.nfc_attendance.nfc_attendance.core.exceptions import RecordDecodeError, ValidationError
from src.nfc_attendance.nfc_attendance.sessions.model import duration_hours, session_from_row
from src.nfc_attendance.nfc_attendance.sessions.service import (
    SessionService,
    adhoc_session_id_for,
    session_id_for,
)

from tests.fakes import InMemorySessions


def _create(service, **overrides):
    kwargs = dict(
        session_date=date(2025, 3, 3),
        subject="CS101",
        attendance_type="Lecture",
        start="08:00",
        end="10:00",
        sections=["A"],
        lecturer="Dr. Aminah",
    )
    kwargs.update(overrides)
    return service.create_session(**kwargs)


def test_create_session_builds_id_and_duration():
    repo = InMemorySessions()

    record = _create(SessionService(repo))

    assert record.session_id == "20250303_CS101_Lecture"
    assert record.duration_hours == 2.0
    assert record.attendance_type == AttendanceType.LECTURE
    assert repo.get_by_id("20250303_CS101_Lecture") == record


def test_end_not_after_start_is_rejected():
    repo = InMemorySessions()

    with pytest.raises(ValidationError, match="End time must be after start"):
        _create(SessionService(repo), start="10:00", end="10:00")
    with pytest.raises(ValidationError, match="End time must be after start"):
        _create(SessionService(repo), start="10:00", end="09:00")
    assert repo.sessions == {}


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"attendance_type": "Seminar"}, "Attendance type is invalid"),
        ({"sections": []}, "Select at least one section"),
        ({"start": ""}, "Start and end time are required"),
        ({"end": "ten"}, "Start and end time are required"),
        ({"subject": "  "}, "Subject is required"),
    ],
)
def test_invalid_session_input(overrides, message):
    with pytest.raises(ValidationError, match=message):
        _create(SessionService(InMemorySessions()), **overrides)


def test_same_day_subject_type_merges_sections_only():
    repo = InMemorySessions()
    service = SessionService(repo)
    first = _create(service, sections=["A"])

    merged = _create(service, sections=["B", "A"], start="13:00", end="14:00", lecturer="Someone Else")

    assert merged.session_id == first.session_id
    assert set(merged.sections) == {"A", "B"}
    assert (merged.start, merged.end, merged.lecturer) == ("08:00", "10:00", "Dr. Aminah")
    assert len(repo.sessions) == 1


def test_adhoc_session_id_and_duplicate():
    repo = InMemorySessions()
    service = SessionService(repo)

    record = service.create_adhoc_session(subject="cs 101", lecturer="Dr  Aminah", session_date=date(2025, 3, 3))

    assert record.session_id == "CS_101_DR_AMINAH"
    assert record.attendance_type is None
    with pytest.raises(ValidationError, match="This session already exists."):
        service.create_adhoc_session(subject="CS 101", lecturer="dr aminah", session_date=date(2025, 3, 4))


def test_id_helpers():
    assert session_id_for(date(2024, 12, 1), "MATH", AttendanceType.EXAM) == "20241201_MATH_Exam"
    assert adhoc_session_id_for(" Web Dev ", "Mr Tan") == "WEB_DEV_MR_TAN"


def test_duration_is_clamped_for_legacy_rows():
    assert duration_hours("10:00", "08:00") == 0.0
    assert duration_hours("08:00", "09:30") == 1.5


def test_session_row_defaults():
    record = session_from_row({"session_id": "X", "session_date": date(2025, 1, 1)}, sections=["A"])

    assert record.subject == "–"
    assert record.start == "00:00"
    assert record.duration_hours == 0.0
    assert record.sections == ("A",)


def test_session_row_without_date_fails_to_decode():
    with pytest.raises(RecordDecodeError):
        session_from_row({"session_id": "X"})


def test_list_filters_and_active_selection(cs101_lecture):
    other = replace(cs101_lecture, session_id="20250304_CS204_Lecture", subject="CS204", date=date(2025, 3, 4))
    service = SessionService(InMemorySessions([cs101_lecture, other]))

    everything = service.list_sessions(subject="All Subjects")
    assert [s.session_id for s in everything] == ["20250304_CS204_Lecture", "20250303_CS101_Lecture"]
    assert [s.subject for s in service.list_sessions(subject="CS101")] == ["CS101"]

    assert SessionService.select_active(everything, "20250303_CS101_Lecture") == cs101_lecture
    assert SessionService.select_active(everything, "gone") == other
    assert SessionService.select_active([], "gone") is None


def test_group_by_subject_sort_orders(cs101_lecture):
    older_cs204 = replace(
        cs101_lecture, session_id="a", subject="CS204", lecturer="Mr Tan", date=date(2025, 2, 1)
    )
    newest_math = replace(
        cs101_lecture, session_id="b", subject="MATH", lecturer="Ms Lee", date=date(2025, 4, 1)
    )
    sessions = [older_cs204, cs101_lecture, newest_math]

    by_date = SessionService.group_by_subject(sessions, SortBy.DATE)
    by_subject = SessionService.group_by_subject(sessions, "Subject")
    by_lecturer = SessionService.group_by_subject(sessions, "Lecturer")

    assert [g.subject for g in by_date] == ["MATH", "CS101", "CS204"]
    assert [g.subject for g in by_subject] == ["CS101", "CS204", "MATH"]
    assert [g.subject for g in by_lecturer] == ["CS101", "CS204", "MATH"]
    assert by_date[0].session_ids == ["b"]


def test_subjects_and_sections_for_lecturer(users):
    service = SessionService(InMemorySessions(), users)

    assert service.subjects_for_lecturer("lecturer_demo") == ["CS101", "CS204"]
    assert service.sections_for_subject("lecturer_demo", "CS101") == ["A", "B"]
