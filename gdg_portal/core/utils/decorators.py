"""Reusable decorators for controllers."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Callable, TypeVar

from flask import current_app, jsonify, request

from gdg_portal.core.session.csrf import validate_csrf_token

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)

CSRF_HEADER = "X-CSRF-Token"
CSRF_FIELD = "csrf_token"


def _submitted_csrf_token():
    token = request.headers.get(CSRF_HEADER)
    if token:
        return token
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload.get(CSRF_FIELD)
    return None


def csrf_protected(fn: F) -> F:
    """Require the session CSRF token in the X-CSRF-Token header or a csrf_token body field."""

    @wraps(fn)
    def wrapper(*args, **kwargs):  # type: ignore[misc]
        if not current_app.config.get("WTF_CSRF_ENABLED", True):
            return fn(*args, **kwargs)
        if not validate_csrf_token(_submitted_csrf_token()):
            logger.info("CSRF check failed for %s %s", request.method, request.path)
            return jsonify({"ok": False, "error": "csrf_failed"}), 403
        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
