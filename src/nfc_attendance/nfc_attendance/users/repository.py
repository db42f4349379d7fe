from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import IdentifierField, Role
from .model import UserProfile


class UserRepository(Protocol):
    """Person records on the backend.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, person_id: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def get_by_identifier(self, field: IdentifierField, value: str) -> Optional[UserProfile]:
        """Exact-match lookup on the deployment's identifier column."""

        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[UserProfile]:
        raise NotImplementedError

    def update_photo_url(self, person_id: str, photo_url: str) -> bool:
        raise NotImplementedError

    def set_password(self, person_id: str, *, password_hash: str, must_change_password: bool) -> bool:
        raise NotImplementedError

    def flag_password_change(self, person_id: str) -> bool:
        """Force the first-time password flow on next sign-in."""

        raise NotImplementedError

    def append_warning(self, person_id: str, warning: str) -> None:
        raise NotImplementedError

    def list_subjects(self, person_id: str) -> Sequence[str]:
        raise NotImplementedError

    def list_sections(self, person_id: str, subject: str) -> Sequence[str]:
        raise NotImplementedError
