"""Request-level access gate."""

from __future__ import annotations

import logging

from flask import Flask, redirect, request

from gdg_portal.core.access.policy import decide_access
from gdg_portal.core.session.accessor import get_session_accessor

logger = logging.getLogger(__name__)


def _is_exempt(path: str, exemptions) -> bool:
    # Entries ending in "/" cover a subtree; anything else names a single path.
    return any(
        path.startswith(entry) if entry.endswith("/") else path == entry for entry in exemptions
    )


def register_access_gate(app: Flask) -> None:
    """Evaluate the access policy before every request."""

    @app.before_request
    def _access_gate():
        path = request.path
        if _is_exempt(path, app.config.get("ACCESS_GATE_EXEMPT_PATHS", ())):
            return None
        state = get_session_accessor().current()
        decision = decide_access(path, state)
        if decision.allowed:
            return None
        logger.debug("Access gate: %s %s -> %s", request.method, path, decision.outcome.value)
        # 307 keeps the method for non-idempotent requests.
        code = 302 if request.method in ("GET", "HEAD") else 307
        return redirect(decision.location, code=code)
