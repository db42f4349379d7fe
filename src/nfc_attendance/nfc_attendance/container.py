from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.reconciler import SCOPE_PERSON, AttendanceReconciler
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .cards.codec import PayloadCodec
from .cards.pcsc_reader import PcscNfcReader
from .cards.reader import NfcReader
from .cards.service import CardService
from .common.connectivity import ConnectivityCheck
from .core.constants import DEFAULT_NFC_TIMEOUT_SECONDS, DEFAULT_RESET_TOKEN_MAX_AGE, LEGACY_CARD_KEY
from .core.enums import IdentifierField
from .database.connection import DBConfig, DatabaseConnection
from .reports.service import LecturerDashboardService, StudentDashboardService
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionService
from .storage.photos import LocalPhotoStorage
from .users.mysql_user_repository import MySQLUserRepository
from .users.password_reset import LoggingResetMailer, PasswordResetService, ResetMailer, ResetTokens
from .users.repository import UserRepository
from .users.service import AuthService, WarningService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: UserRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository

    photos: LocalPhotoStorage
    reader: NfcReader
    connectivity: Optional[ConnectivityCheck]

    auth_service: AuthService
    password_reset_service: PasswordResetService
    warning_service: WarningService
    session_service: SessionService
    card_service: CardService
    attendance_service: AttendanceService
    reconciler: AttendanceReconciler
    lecturer_dashboard_service: LecturerDashboardService
    student_dashboard_service: StudentDashboardService


def build_container(
    *,
    db_config: dict,
    identifier_field: str = IdentifierField.MATRIC_NO.value,
    card_key: str = LEGACY_CARD_KEY,
    card_random_iv: bool = False,
    nfc_poll_timeout: float = DEFAULT_NFC_TIMEOUT_SECONDS,
    nfc_reader_index: int = 0,
    photo_root: str = "photos",
    photo_base_url: str = "/photos",
    check_connectivity: bool = True,
    reader: Optional[NfcReader] = None,
    secret_key: str = "dev-secret-key",
    reset_token_max_age: int = DEFAULT_RESET_TOKEN_MAX_AGE,
    reset_link_base: str = "/reset-password",
    mailer: Optional[ResetMailer] = None,
    users_repo: Optional[UserRepository] = None,
    sessions_repo: Optional[SessionRepository] = None,
    attendance_repo: Optional[AttendanceRepository] = None,
) -> Container:
    config = DBConfig.from_dict(db_config)
    conn = DatabaseConnection.get_instance(config)
    field = IdentifierField(identifier_field)

    users_repo = users_repo or MySQLUserRepository(conn)
    sessions_repo = sessions_repo or MySQLSessionRepository(conn)
    attendance_repo = attendance_repo or MySQLAttendanceRepository(conn)

    photos = LocalPhotoStorage(photo_root, base_url=photo_base_url)
    connectivity = ConnectivityCheck(config.host, config.port) if check_connectivity else None
    codec = PayloadCodec(card_key, random_iv=card_random_iv)

    auth_service = AuthService(users_repo, identifier_field=field)
    password_reset_service = PasswordResetService(
        users_repo,
        ResetTokens(secret_key, max_age=reset_token_max_age),
        mailer or LoggingResetMailer(),
        identifier_field=field,
        link_base=reset_link_base,
    )
    warning_service = WarningService(users_repo)
    session_service = SessionService(sessions_repo, users_repo)
    card_service = CardService(
        users_repo,
        codec,
        photos=photos,
        connectivity=connectivity,
        identifier_field=field,
        poll_timeout=nfc_poll_timeout,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        cards=card_service,
        connectivity=connectivity,
        identifier_field=field,
    )
    reconciler = AttendanceReconciler(attendance_repo, scope=SCOPE_PERSON)
    lecturer_dashboard_service = LecturerDashboardService(session_service, users_repo, reconciler)
    student_dashboard_service = StudentDashboardService(session_service, users_repo, attendance_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        photos=photos,
        reader=reader or PcscNfcReader(nfc_reader_index),
        connectivity=connectivity,
        auth_service=auth_service,
        password_reset_service=password_reset_service,
        warning_service=warning_service,
        session_service=session_service,
        card_service=card_service,
        attendance_service=attendance_service,
        reconciler=reconciler,
        lecturer_dashboard_service=lecturer_dashboard_service,
        student_dashboard_service=student_dashboard_service,
    )
