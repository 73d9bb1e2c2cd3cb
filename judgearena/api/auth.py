"""Bearer-token decorators for the HTTP API."""

from functools import wraps
from typing import Callable, Optional

from flask import current_app, request

from ..engine.errors import AuthenticationError
from ..utils.logger_config import get_logger
from .responses import error_response

logger = get_logger("api.auth")


def get_services():
    return current_app.extensions["judgearena"]


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def _authenticate():
    """Return (identity, None) or (None, error response)."""
    token = _bearer_token()
    if token is None:
        return None, error_response("Authorization header missing or invalid", 401)

    sessions = get_services().sessions
    try:
        identity = sessions.verify_token(token)
    except AuthenticationError as e:
        logger.debug(f"Rejected token: {e}")
        return None, error_response("Invalid or expired token", 401)

    if not sessions.is_session_active(identity):
        return None, error_response("Session is no longer active", 401)
    return identity, None


def require_admin(view: Callable) -> Callable:
    """Only admin tokens pass. The decoded Identity is passed as ``identity``."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        identity, failure = _authenticate()
        if failure is not None:
            return failure
        if not identity.is_admin:
            return error_response("Forbidden: Admin access required", 403)
        return view(*args, identity=identity, **kwargs)
    return wrapper


def require_participant(view: Callable) -> Callable:
    """Only participant tokens of a live session pass."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        identity, failure = _authenticate()
        if failure is not None:
            return failure
        if identity.is_admin:
            return error_response("Forbidden: Participant access required", 403)
        return view(*args, identity=identity, **kwargs)
    return wrapper
