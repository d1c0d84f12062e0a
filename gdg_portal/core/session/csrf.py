"""CSRF tokens for the JSON form endpoints, kept in the signed Flask session."""

from __future__ import annotations

import secrets
from typing import Optional

from flask import session

CSRF_TOKEN_SESSION_KEY = "_csrf_token"


def generate_csrf_token() -> str:
    token = session.get(CSRF_TOKEN_SESSION_KEY)
    if not token:
        token = secrets.token_hex(32)
        session[CSRF_TOKEN_SESSION_KEY] = token
    return token


def rotate_csrf_token() -> str:
    """Issue a fresh token whenever the signed-in identity changes."""
    session.pop(CSRF_TOKEN_SESSION_KEY, None)
    return generate_csrf_token()


def validate_csrf_token(token: Optional[str]) -> bool:
    expected = session.get(CSRF_TOKEN_SESSION_KEY)
    if not token or not expected:
        return False
    return secrets.compare_digest(token, expected)
