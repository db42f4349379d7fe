from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackendError,
    ConnectivityError,
    DomainError,
    NfcError,
    NfcTimeout,
    UnknownIdentifier,
)

logger = logging.getLogger(__name__)

# Most specific first.
_STATUS_BY_ERROR = (
    (UnknownIdentifier, 404),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (ConnectivityError, 503),
    (NfcTimeout, 408),
    (NfcError, 409),
    (BackendError, 502),
)


def status_for(error: DomainError) -> int:
    for kind, status in _STATUS_BY_ERROR:
        if isinstance(error, kind):
            return status
    return 400


def error_response(error: DomainError):
    body = {"success": False, "message": str(error)}
    code = getattr(error, "code", None)
    if code:
        body["code"] = code
    return jsonify(body), status_for(error)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "person_id" not in session:
            return jsonify({"success": False, "message": "Please sign in to continue."}), 401
        return view(*args, **kwargs)

    return wrapper


def lecturer_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "person_id" not in session:
            return jsonify({"success": False, "message": "Please sign in to continue."}), 401
        if session.get("role") != Role.LECTURER.value:
            return jsonify({"success": False, "message": "Lecturers only."}), 403
        return view(*args, **kwargs)

    return wrapper
