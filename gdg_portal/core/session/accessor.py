"""Request-scoped session accessor with an explicit refresh operation."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from flask import Flask, g
from flask_jwt_extended import set_access_cookies, unset_access_cookies

from gdg_portal.core.events.event_bus import SESSION_CHANGED, event_bus
from gdg_portal.core.identity.client import get_identity_client
from gdg_portal.core.identity.errors import IdentityProviderError
from gdg_portal.core.identity.schemas import ActiveSession
from gdg_portal.core.session.state import ANONYMOUS, SessionState, read_session_state, state_from_token

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionState], None]


class SessionAccessor:
    """Holds the session state for one request.

    State is read lazily from the request token. ``establish``, ``refresh`` and
    ``clear`` replace it, notify subscribers, and queue the cookie update that
    ``apply_cookie`` writes onto the response.
    """

    def __init__(self) -> None:
        self._state: Optional[SessionState] = None
        self._listeners: List[SessionListener] = []
        self._cookie_token: Optional[str] = None
        self._cookie_cleared = False

    def current(self) -> SessionState:
        if self._state is None:
            self._state = read_session_state()
        return self._state

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def establish(self, session_id: str) -> ActiveSession:
        """Activate a newly created session and adopt its token."""
        client = get_identity_client()
        active = client.set_active_session(session_id)
        self._adopt(client.get_session_token(session_id))
        return active

    def refresh(self) -> SessionState:
        """Re-mint the session token so claims reflect the latest metadata."""
        state = self.current()
        if not state.session_id:
            return state
        self._adopt(get_identity_client().get_session_token(state.session_id))
        return self.current()

    def sign_out(self) -> None:
        state = self.current()
        if state.session_id:
            try:
                get_identity_client().end_session(state.session_id)
            except IdentityProviderError as exc:
                # The cookie is dropped regardless; the provider expires the session on its own.
                logger.warning("Failed to end session %s: %s", state.session_id, exc)
        self.clear()

    def clear(self) -> None:
        self._cookie_token = None
        self._cookie_cleared = True
        self._replace(ANONYMOUS)

    def apply_cookie(self, response):
        if self._cookie_token:
            set_access_cookies(response, self._cookie_token)
        elif self._cookie_cleared:
            unset_access_cookies(response)
        return response

    def _adopt(self, token: str) -> None:
        state = state_from_token(token)
        self._cookie_token = token
        self._cookie_cleared = False
        self._replace(state)

    def _replace(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
        event_bus.publish(SESSION_CHANGED, state.to_dict())


def get_session_accessor() -> SessionAccessor:
    if "session_accessor" not in g:
        g.session_accessor = SessionAccessor()
    return g.session_accessor


def init_session_accessor(app: Flask) -> None:
    @app.after_request
    def _write_session_cookie(response):
        accessor = g.get("session_accessor")
        if accessor is not None:
            accessor.apply_cookie(response)
        return response

    @app.teardown_request
    def _drop_session_accessor(exc):
        # g outlives the request when an app context is already pushed.
        g.pop("session_accessor", None)


__all__ = ["SessionAccessor", "get_session_accessor", "init_session_accessor"]
