from __future__ import annotations

import socket

import pytest

from src.nfc_attendance.nfc_attendance.common.connectivity import ConnectivityCheck, ensure_online
from src.nfc_attendance.nfc_attendance.common.validators import require_matric_format
from src.nfc_attendance.nfc_attendance.core.exceptions import ConnectivityError, ValidationError
from src.nfc_attendance.nfc_attendance.storage.photos import LocalPhotoStorage, blob_key


def test_no_connectivity_check_always_passes():
    ensure_online(None)


def test_connectivity_check_reaches_listening_socket():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    try:
        connectivity = ConnectivityCheck("127.0.0.1", server.getsockname()[1], timeout=1.0)
        assert connectivity.is_online()
        ensure_online(connectivity)
    finally:
        server.close()


def test_connectivity_check_offline_raises(monkeypatch):
    def refuse(*_args, **_kwargs):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(socket, "create_connection", refuse)

    with pytest.raises(ConnectivityError, match="No internet connection"):
        ensure_online(ConnectivityCheck("db.invalid", 3306))


@pytest.mark.parametrize("value", ["DI230101", "ab123456"])
def test_matric_format_accepts(value):
    assert require_matric_format(value) == value


@pytest.mark.parametrize("value", ["D1230101", "DI23010", "DI2301011", "DIX30101"])
def test_matric_format_rejects(value):
    with pytest.raises(ValidationError):
        require_matric_format(value)


def test_blob_key_layout():
    assert blob_key("student_photos", "student_demo") == "student_photos/student_demo.jpg"


@pytest.mark.parametrize("person_id", ["../etc", "a/b", ""])
def test_blob_key_rejects_unsafe_names(person_id):
    with pytest.raises(ValueError):
        blob_key("student_photos", person_id)


def test_local_storage_put_and_url(tmp_path):
    storage = LocalPhotoStorage(tmp_path, base_url="/photos/")

    assert storage.url_for("student_photos", "p1") is None
    url = storage.put("student_photos", "p1", b"img")

    assert url == "/photos/student_photos/p1.jpg"
    assert storage.url_for("student_photos", "p1") == url
    assert storage.path_for("student_photos", "p1").read_bytes() == b"img"
