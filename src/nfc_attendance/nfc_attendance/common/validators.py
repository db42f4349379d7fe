from __future__ import annotations

import re

from ..core.exceptions import ValidationError

MATRIC_PATTERN = re.compile(r"^[A-Za-z]{2}\d{6}$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_matric_format(value: str) -> str:
    value = require_non_empty(value, "Matric No")
    if not MATRIC_PATTERN.match(value):
        raise ValidationError("Please enter a valid Matric No (e.g. DI230101)")
    return value
