from __future__ import annotations

from datetime import date, datetime

import pytest
from werkzeug.security import generate_password_hash

from src.nfc_attendance.nfc_attendance.cards.codec import PayloadCodec
from src.nfc_attendance.nfc_attendance.core.enums import AttendanceType, Role
from src.nfc_attendance.nfc_attendance.sessions.model import SessionRecord
from src.nfc_attendance.nfc_attendance.users.model import UserProfile

from tests.fakes import FakeConnectivity, FakeReader, InMemoryAttendance, InMemorySessions, InMemoryUsers


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 3, 8, 30, 0)


@pytest.fixture
def student() -> UserProfile:
    return UserProfile(
        person_id="student_demo",
        name="Daniel Lim",
        email="daniel@student.example.edu",
        role=Role.STUDENT,
        ic="010203-10-1234",
        matric_no="DI230101",
        password_hash=generate_password_hash("student123"),
    )


@pytest.fixture
def lecturer() -> UserProfile:
    return UserProfile(
        person_id="lecturer_demo",
        name="Dr. Aminah",
        email="aminah@example.edu",
        role=Role.LECTURER,
        staff_number="ST1001",
        password_hash=generate_password_hash("lecturer123"),
    )


@pytest.fixture
def users(student, lecturer) -> InMemoryUsers:
    return InMemoryUsers(
        [student, lecturer],
        subjects={
            "lecturer_demo": {"CS101": ["A", "B"], "CS204": ["A"]},
            "student_demo": {"CS101": [""], "CS204": [""]},
        },
    )


@pytest.fixture
def cs101_lecture() -> SessionRecord:
    return SessionRecord(
        session_id="20250303_CS101_Lecture",
        date=date(2025, 3, 3),
        subject="CS101",
        lecturer="Dr. Aminah",
        sections=("A",),
        attendance_type=AttendanceType.LECTURE,
        start="08:00",
        end="10:00",
        duration_hours=2.0,
    )


@pytest.fixture
def sessions_repo(cs101_lecture) -> InMemorySessions:
    return InMemorySessions([cs101_lecture])


@pytest.fixture
def attendance_repo(fixed_now) -> InMemoryAttendance:
    return InMemoryAttendance(clock=fixed_now)


@pytest.fixture
def codec() -> PayloadCodec:
    return PayloadCodec()


@pytest.fixture
def reader() -> FakeReader:
    return FakeReader()


@pytest.fixture
def connectivity() -> FakeConnectivity:
    return FakeConnectivity(online=True)
