from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, session
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthorizationError,
    LoadError,
    NotFoundError,
    TransitionFailedError,
    TransitionInProgressError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (TransitionInProgressError, 409),
    (TransitionFailedError, 503),
    (LoadError, 503),
)


def current_actor() -> str:
    return str(session["user_id"])


def json_error(message: str, status: int, **extra):
    return jsonify({"success": False, "message": message, **extra}), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_error("Please sign in to continue", 401)
        return view(*args, **kwargs)

    return wrapper


def error_response(exc: Exception):
    if isinstance(exc, HTTPException):
        return json_error(exc.description or exc.name, exc.code or 500)
    for exc_type, status in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return json_error(str(exc), status, error=type(exc).__name__)
    logger.exception("unhandled error", exc_info=exc)
    return json_error("Internal server error", 500)


def json_api(view):
    """Wrap a JSON endpoint: domain errors become status codes."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except Exception as exc:
            return error_response(exc)

    return wrapper
