from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from ..core.enums import IdentifierField, Role
from ..core.exceptions import RecordDecodeError


@dataclass(frozen=True)
class UserProfile:
    """Domain entity: a student or lecturer record."""

    person_id: str
    name: str
    email: str
    role: Role
    ic: Optional[str] = None
    matric_no: Optional[str] = None
    staff_number: Optional[str] = None
    photo_url: Optional[str] = None
    must_change_password: bool = False
    password_hash: Optional[str] = None
    warnings: Tuple[str, ...] = ()

    def identifier(self, field: IdentifierField) -> Optional[str]:
        return getattr(self, field.value)


def user_from_row(row: Mapping[str, Any], warnings: Tuple[str, ...] = ()) -> UserProfile:
    """Single decoding boundary for person rows; all defaults applied here."""
    person_id = row.get("person_id")
    if not person_id:
        raise RecordDecodeError("User row without person_id")
    try:
        role = Role(row.get("role") or Role.STUDENT.value)
    except ValueError as e:
        raise RecordDecodeError(f"Unknown role {row.get('role')!r} for {person_id}") from e

    return UserProfile(
        person_id=str(person_id),
        name=row.get("name") or "",
        email=row.get("email") or "",
        role=role,
        ic=row.get("ic"),
        matric_no=row.get("matric_no"),
        staff_number=row.get("staff_number"),
        photo_url=row.get("photo_url"),
        must_change_password=bool(row.get("must_change_password") or False),
        password_hash=row.get("password_hash"),
        warnings=tuple(warnings),
    )
