from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import IdentifierField, Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from .model import UserProfile
from .repository import UserRepository

logger = logging.getLogger(__name__)

STUDENT_LANDING = "student_dashboard"
LECTURER_LANDING = "lecturer_dashboard"

# Sign-in order after the configured field; IC is shared by both roles.
SIGN_IN_FIELDS = (IdentifierField.IC, IdentifierField.MATRIC_NO, IdentifierField.STAFF_NUMBER)


def find_by_any_identifier(
    users: UserRepository, identifier: str, *, preferred: IdentifierField = IdentifierField.MATRIC_NO
) -> Optional[UserProfile]:
    """Try the preferred identifier column first, then the remaining ones."""
    for field in dict.fromkeys((IdentifierField(preferred),) + SIGN_IN_FIELDS):
        user = users.get_by_identifier(field, identifier)
        if user:
            return user
    return None


class AuthService:
    """Use case: sign in by identifier + password, landing page, password change.

    Any of IC, matric or staff number signs in, so lecturers and students
    share one login form whatever the card identifier field is.
    """

    def __init__(self, users: UserRepository, *, identifier_field: IdentifierField = IdentifierField.MATRIC_NO):
        self._users = users
        self._field = IdentifierField(identifier_field)

    def sign_in_with_identifier(self, identifier: str, password: str) -> UserProfile:
        identifier = require_non_empty(identifier, "Identifier")

        user = find_by_any_identifier(self._users, identifier, preferred=self._field)
        if not user:
            raise AuthenticationError(f"No account found for {identifier}.", code="user-not-found")
        if not user.email:
            raise AuthenticationError(f"User record for {identifier} is missing an email.", code="invalid-user")

        try:
            ok = bool(user.password_hash) and check_password_hash(user.password_hash, password)
        except ValueError:
            # placeholder or corrupted hashes
            ok = False
        if not ok:
            raise AuthenticationError("Incorrect password.", code="wrong-password")

        logger.info("Signed in %s (%s)", user.person_id, user.role.value)
        return user

    def landing_for(self, profile: UserProfile) -> str:
        if profile.role != Role.STUDENT and profile.must_change_password:
            raise AuthorizationError("You must set your password. Check your email for the link.")
        if profile.role == Role.STUDENT:
            return STUDENT_LANDING
        if profile.role == Role.LECTURER:
            return LECTURER_LANDING
        raise AuthorizationError("Unknown role – please contact support.")

    def change_password(self, person_id: str, new_password: str) -> None:
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)
        if not self._users.set_password(
            person_id,
            password_hash=generate_password_hash(new_password),
            must_change_password=False,
        ):
            raise ValidationError("Password update failed")


class WarningService:
    """Use case: lecturer flags an unexcused absence on a student's record."""

    def __init__(self, users: UserRepository):
        self._users = users

    def send_warning(self, person_id: str, *, today: date | None = None) -> str:
        today = today or date.today()
        user = self._users.get_by_id(person_id)
        if not user:
            raise ValidationError("Student not found")

        warning = f"Absent without excuse on {today.isoformat()}"
        self._users.append_warning(person_id, warning)
        logger.info("Warning sent to %s: %s", person_id, warning)
        return warning
