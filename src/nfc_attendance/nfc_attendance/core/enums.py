from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role stored on the person record."""

    STUDENT = "student"
    LECTURER = "lecturer"


class AttendanceType(str, Enum):
    """Kind of class meeting a session represents."""

    LECTURE = "Lecture"
    LABORATORY = "Laboratory"
    PROGRAM = "Program"
    EXAM = "Exam"


class IdentifierField(str, Enum):
    """Person column a card identifier is matched against (per deployment)."""

    MATRIC_NO = "matric_no"
    IC = "ic"
    STAFF_NUMBER = "staff_number"


class MarkStatus(str, Enum):
    RECORDED = "RECORDED"
    ALREADY_RECORDED = "ALREADY_RECORDED"


class AuthState(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    LOADING = "LOADING"
    AUTHENTICATED = "AUTHENTICATED"
    AUTHENTICATED_NO_PROFILE = "AUTHENTICATED_NO_PROFILE"


class SortBy(str, Enum):
    DATE = "Date"
    SUBJECT = "Subject"
    LECTURER = "Lecturer"
