from __future__ import annotations

from dataclasses import replace

import pytest

from src.nfc_attendance.nfc_attendance.cards.ndef_records import text_record
from src.nfc_attendance.nfc_attendance.common.web import status_for
from src.nfc_attendance.nfc_attendance.core.exceptions import (
    AuthenticationError,
    BackendError,
    ConnectivityError,
    NfcTimeout,
    UnknownIdentifier,
    ValidationError,
)
from src.nfc_attendance.nfc_attendance.main import create_app
from src.nfc_attendance.nfc_attendance.users.password_reset import ResetTokens

from tests.fakes import FakeReader


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("AUTO_INIT_DB", "0")
    monkeypatch.setenv("AUTO_SEED_DB", "0")
    monkeypatch.setenv("PHOTO_ROOT", str(tmp_path))
    app = create_app(reader=FakeReader())
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def station(monkeypatch, tmp_path, users, sessions_repo, attendance_repo):
    """App wired to in-memory repositories and a fake reader."""
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("AUTO_INIT_DB", "0")
    monkeypatch.setenv("AUTO_SEED_DB", "0")
    monkeypatch.setenv("PHOTO_ROOT", str(tmp_path))
    reader = FakeReader()
    app = create_app(reader=reader, users_repo=users, sessions_repo=sessions_repo, attendance_repo=attendance_repo)
    app.config["TESTING"] = True
    return app.test_client(), reader, users


def test_me_without_session_is_unauthenticated(client):
    resp = client.get("/api/me")

    assert resp.status_code == 200
    assert resp.get_json()["state"] == "UNAUTHENTICATED"


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/sessions"),
        ("post", "/api/sessions"),
        ("post", "/api/cards/write"),
        ("post", "/api/sessions/X/scan"),
        ("get", "/api/dashboard/student"),
    ],
)
def test_protected_routes_require_sign_in(client, method, path):
    resp = getattr(client, method)(path)

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_student_cannot_use_lecturer_routes(client):
    with client.session_transaction() as s:
        s["person_id"] = "student_demo"
        s["role"] = "student"

    assert client.post("/api/cards/read").status_code == 403


def test_domain_errors_surface_as_json(client):
    with client.session_transaction() as s:
        s["person_id"] = "lecturer_demo"
        s["role"] = "lecturer"

    resp = client.post("/api/sessions/adhoc", json={"subject": "", "lecturer": "Mr Tan"})

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "message": "Subject is required"}


@pytest.mark.parametrize(
    "error,status",
    [
        (ValidationError("x"), 400),
        (UnknownIdentifier("x"), 404),
        (AuthenticationError("x", code="wrong-password"), 401),
        (ConnectivityError("x"), 503),
        (NfcTimeout("x"), 408),
        (BackendError("x"), 502),
    ],
)
def test_status_mapping(error, status):
    assert status_for(error) == status


@pytest.mark.parametrize(
    "identifier,password,landing,role",
    [
        ("DI230101", "student123", "student_dashboard", "student"),
        ("ST1001", "lecturer123", "lecturer_dashboard", "lecturer"),
        ("010203-10-1234", "student123", "student_dashboard", "student"),
    ],
)
def test_both_roles_sign_in_with_default_identifier_field(station, identifier, password, landing, role):
    client, _, _ = station

    resp = client.post("/api/login", json={"identifier": identifier, "password": password})

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["landing"] == landing
    assert body["profile"]["role"] == role
    assert client.get("/api/me").get_json()["state"] == "AUTHENTICATED"


def test_wrong_password_is_401_with_code(station):
    client, _, _ = station

    resp = client.post("/api/login", json={"identifier": "ST1001", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Incorrect password.", "code": "wrong-password"}


def test_flagged_lecturer_sets_password_without_a_session(station, lecturer):
    client, _, users = station
    users.users[lecturer.person_id] = replace(lecturer, must_change_password=True)
    assert client.post("/api/login", json={"identifier": "ST1001", "password": "lecturer123"}).status_code == 403

    resp = client.post("/api/password/reset-request", json={"identifier": "ST1001"})
    assert resp.status_code == 200
    assert resp.get_json()["success"] is True

    token = ResetTokens("test-secret").issue(users.get_by_id(lecturer.person_id))
    resp = client.post("/api/password/reset", json={"token": token, "new_password": "fresh-pass"})
    assert resp.status_code == 200

    resp = client.post("/api/login", json={"identifier": "ST1001", "password": "fresh-pass"})
    assert resp.status_code == 200
    assert resp.get_json()["landing"] == "lecturer_dashboard"


def test_reset_request_for_record_without_email(station, lecturer):
    client, _, users = station
    users.users[lecturer.person_id] = replace(lecturer, email="")

    resp = client.post("/api/password/reset-request", json={"identifier": "ST1001"})

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "invalid-user"


def test_scan_timeout_is_408_and_releases_reader(station):
    client, reader, _ = station
    reader.poll_error = NfcTimeout("No card presented before timeout")
    with client.session_transaction() as s:
        s["person_id"] = "lecturer_demo"
        s["role"] = "lecturer"

    resp = client.post("/api/sessions/20250303_CS101_Lecture/scan")

    assert resp.status_code == 408
    assert resp.get_json() == {"success": False, "message": "NFC poll error: No card presented before timeout"}
    assert reader.finished == [{"message": None, "error": "No card presented before timeout"}]


def test_scan_records_attendance_end_to_end(station):
    client, reader, _ = station
    reader.records = [text_record("DI230101")]
    with client.session_transaction() as s:
        s["person_id"] = "lecturer_demo"
        s["role"] = "lecturer"

    first = client.post("/api/sessions/20250303_CS101_Lecture/scan")
    again = client.post("/api/sessions/20250303_CS101_Lecture/scan")

    assert first.status_code == 201
    assert first.get_json()["success"] is True
    assert again.status_code == 200
