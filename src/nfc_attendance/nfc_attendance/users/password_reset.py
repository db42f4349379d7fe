from __future__ import annotations

import hashlib
import logging
from typing import Optional, Protocol

from flask_mail import Mail, Message
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import DEFAULT_RESET_TOKEN_MAX_AGE, MIN_PASSWORD_LENGTH
from ..core.enums import IdentifierField
from ..core.exceptions import AuthenticationError, BackendError, ValidationError
from .model import UserProfile
from .repository import UserRepository
from .service import find_by_any_identifier

logger = logging.getLogger(__name__)

RESET_SALT = "password-reset"


def _hash_fingerprint(password_hash: Optional[str]) -> str:
    # Changes whenever the password does, so a used link stops verifying.
    return hashlib.sha256((password_hash or "").encode("utf-8")).hexdigest()[:16]


class ResetTokens:
    """Signed, expiring password-reset tokens bound to the current password hash."""

    def __init__(self, secret_key: str, *, max_age: int = DEFAULT_RESET_TOKEN_MAX_AGE):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=RESET_SALT)
        self._max_age = int(max_age)

    def issue(self, user: UserProfile) -> str:
        return self._serializer.dumps({"pid": user.person_id, "ph": _hash_fingerprint(user.password_hash)})

    def verify(self, token: str) -> dict:
        try:
            data = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired as e:
            raise ValidationError("Reset link has expired.") from e
        except BadSignature as e:
            raise ValidationError("Reset link is invalid.") from e
        if not isinstance(data, dict) or not data.get("pid"):
            raise ValidationError("Reset link is invalid.")
        return data


class ResetMailer(Protocol):
    def send_reset(self, email: str, name: str, link: str) -> None:
        raise NotImplementedError


class FlaskMailResetMailer(ResetMailer):
    def __init__(self, mail: Mail, *, sender: str):
        self._mail = mail
        self._sender = sender

    def send_reset(self, email: str, name: str, link: str) -> None:
        msg = Message(subject="Set your attendance password", sender=self._sender, recipients=[email])
        msg.body = (
            f"Hello {name},\n\n"
            f"Use the link below to set your password:\n{link}\n\n"
            "If you did not ask for this, you can ignore this email.\n"
        )
        self._mail.send(msg)


class LoggingResetMailer(ResetMailer):
    """Used when no mail server is configured."""

    def send_reset(self, email: str, name: str, link: str) -> None:
        logger.warning("Mail server not configured; reset link for %s: %s", email, link)


class PasswordResetService:
    """Use case: first-time password / forgotten password, without a session.

    Requesting a link flags the account so the next sign-in is refused until
    the password has been set through the link.
    """

    def __init__(
        self,
        users: UserRepository,
        tokens: ResetTokens,
        mailer: ResetMailer,
        *,
        identifier_field: IdentifierField = IdentifierField.MATRIC_NO,
        link_base: str = "/reset-password",
    ):
        self._users = users
        self._tokens = tokens
        self._mailer = mailer
        self._field = IdentifierField(identifier_field)
        self._link_base = link_base

    def request_reset(self, identifier: str) -> None:
        identifier = require_non_empty(identifier, "Identifier")

        user = find_by_any_identifier(self._users, identifier, preferred=self._field)
        if not user:
            raise AuthenticationError(f"No account found for {identifier}.", code="user-not-found")
        if not user.email:
            raise AuthenticationError(f"User record for {identifier} is missing an email.", code="invalid-user")

        self._users.flag_password_change(user.person_id)
        link = f"{self._link_base}?token={self._tokens.issue(user)}"
        try:
            self._mailer.send_reset(user.email, user.name or identifier, link)
        except Exception as e:
            logger.exception("Reset email to %s failed", user.email)
            raise BackendError(f"Could not send reset email: {e}") from e
        logger.info("Password reset requested for %s", user.person_id)

    def reset_password(self, token: str, new_password: str) -> UserProfile:
        data = self._tokens.verify(require_non_empty(token, "Token"))
        user = self._users.get_by_id(data["pid"])
        if not user or data.get("ph") != _hash_fingerprint(user.password_hash):
            raise ValidationError("Reset link is invalid.")

        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)
        if not self._users.set_password(
            user.person_id,
            password_hash=generate_password_hash(new_password),
            must_change_password=False,
        ):
            raise ValidationError("Password update failed")
        logger.info("Password set through reset link for %s", user.person_id)
        return user
