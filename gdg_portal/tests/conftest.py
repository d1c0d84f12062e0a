import itertools
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
from flask_jwt_extended import create_access_token

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gdg_portal import create_app
from gdg_portal.core.identity.constants import (
    ERROR_CODE_INCORRECT,
    ERROR_IDENTIFIER_EXISTS,
    ERROR_IDENTIFIER_NOT_FOUND,
    ERROR_PASSWORD_INCORRECT,
    ERROR_RESOURCE_NOT_FOUND,
    STATUS_COMPLETE,
    STATUS_MISSING_REQUIREMENTS,
    STATUS_NEEDS_FIRST_FACTOR,
    STATUS_NEEDS_SECOND_FACTOR,
    STRATEGY_EMAIL_CODE,
    STRATEGY_RESET_PASSWORD_EMAIL_CODE,
)
from gdg_portal.core.identity.errors import IdentityProviderError, ProviderErrorDetail
from gdg_portal.core.identity.schemas import (
    ActiveSession,
    Factor,
    IdentityUser,
    SessionTask,
    SignInAttempt,
    SignUpAttempt,
)

VALID_CODE = "424242"
ONBOARDED_METADATA = {
    "uni_id": "441234567",
    "fullArabicName": "محمد أحمد",
    "onboardingComplete": True,
}


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (Flask app, fake provider)")


def _provider_error(status: int, code: str, message: str, long_message: Optional[str] = None):
    return IdentityProviderError(
        status, [ProviderErrorDetail(code=code, message=message, long_message=long_message)]
    )


class FakeIdentityProvider:
    """In-memory stand-in for IdentityClient with a single accepted code."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.users: Dict[str, Dict[str, Any]] = {}
        self.sign_ups: Dict[str, Dict[str, Any]] = {}
        self.sign_ins: Dict[str, Dict[str, Any]] = {}
        self.sessions: Dict[str, str] = {}
        self.ended_sessions: list = []
        self.codes_sent: list = []
        self.pending_task: Optional[str] = None
        self.fail_metadata_update = False

    def _next(self, prefix: str) -> str:
        return f"{prefix}_{next(self._ids)}"

    def add_user(self, email, password="secret-pass", metadata=None, second_factor=False) -> str:
        user_id = self._next("user")
        self.users[user_id] = {
            "email": email,
            "password": password,
            "metadata": dict(metadata or {}),
            "second_factor": second_factor,
        }
        return user_id

    def _user_by_email(self, email) -> Optional[str]:
        return next((uid for uid, u in self.users.items() if u["email"] == email), None)

    def _new_session(self, user_id: str) -> str:
        session_id = self._next("sess")
        self.sessions[session_id] = user_id
        return session_id

    # --- sign-up ---

    def create_sign_up(self, email_address, password):
        if self._user_by_email(email_address):
            raise _provider_error(
                422, ERROR_IDENTIFIER_EXISTS, "That email address is taken. Please try another."
            )
        attempt_id = self._next("sua")
        self.sign_ups[attempt_id] = {"email": email_address, "password": password}
        return SignUpAttempt(id=attempt_id, status=STATUS_MISSING_REQUIREMENTS, email_address=email_address)

    def prepare_sign_up_verification(self, sign_up_id):
        if sign_up_id not in self.sign_ups:
            raise _provider_error(404, ERROR_RESOURCE_NOT_FOUND, "not found")
        self.codes_sent.append(sign_up_id)
        return SignUpAttempt(id=sign_up_id, status=STATUS_MISSING_REQUIREMENTS)

    def attempt_sign_up_verification(self, sign_up_id, code):
        pending = self.sign_ups.get(sign_up_id)
        if pending is None:
            raise _provider_error(404, ERROR_RESOURCE_NOT_FOUND, "not found")
        if code != VALID_CODE:
            raise _provider_error(422, ERROR_CODE_INCORRECT, "Incorrect code", "The code is incorrect.")
        user_id = self.add_user(pending["email"], pending["password"])
        return SignUpAttempt(
            id=sign_up_id, status=STATUS_COMPLETE, created_session_id=self._new_session(user_id)
        )

    # --- sign-in ---

    def create_sign_in(self, identifier, password=None, strategy=None):
        user_id = self._user_by_email(identifier)
        if user_id is None:
            raise _provider_error(422, ERROR_IDENTIFIER_NOT_FOUND, "Couldn't find your account.")
        attempt_id = self._next("sia")
        self.sign_ins[attempt_id] = {"user_id": user_id}
        if strategy == STRATEGY_RESET_PASSWORD_EMAIL_CODE:
            self.codes_sent.append(attempt_id)
            return SignInAttempt(id=attempt_id, status=STATUS_NEEDS_FIRST_FACTOR, identifier=identifier)
        user = self.users[user_id]
        if password != user["password"]:
            raise _provider_error(422, ERROR_PASSWORD_INCORRECT, "Password is incorrect.")
        if user["second_factor"]:
            return SignInAttempt(
                id=attempt_id,
                status=STATUS_NEEDS_SECOND_FACTOR,
                supported_second_factors=[
                    Factor(strategy=STRATEGY_EMAIL_CODE, email_address_id=f"idn_{user_id}")
                ],
            )
        return SignInAttempt(
            id=attempt_id, status=STATUS_COMPLETE, created_session_id=self._new_session(user_id)
        )

    def prepare_second_factor(self, sign_in_id, email_address_id):
        self.codes_sent.append(sign_in_id)
        return SignInAttempt(id=sign_in_id, status=STATUS_NEEDS_SECOND_FACTOR)

    def _complete_sign_in(self, sign_in_id, code):
        attempt = self.sign_ins.get(sign_in_id)
        if attempt is None:
            raise _provider_error(404, ERROR_RESOURCE_NOT_FOUND, "not found")
        if code != VALID_CODE:
            raise _provider_error(422, ERROR_CODE_INCORRECT, "Incorrect code")
        return attempt["user_id"]

    def attempt_second_factor(self, sign_in_id, code):
        user_id = self._complete_sign_in(sign_in_id, code)
        return SignInAttempt(
            id=sign_in_id, status=STATUS_COMPLETE, created_session_id=self._new_session(user_id)
        )

    def attempt_first_factor(self, sign_in_id, strategy, code, password=None):
        user_id = self._complete_sign_in(sign_in_id, code)
        if password is not None:
            self.users[user_id]["password"] = password
        return SignInAttempt(
            id=sign_in_id, status=STATUS_COMPLETE, created_session_id=self._new_session(user_id)
        )

    # --- sessions ---

    def set_active_session(self, session_id):
        task = SessionTask(key=self.pending_task) if self.pending_task else None
        return ActiveSession(id=session_id, user_id=self.sessions[session_id], current_task=task)

    def get_session_token(self, session_id):
        user_id = self.sessions[session_id]
        return create_access_token(
            identity=user_id,
            additional_claims={"sid": session_id, "metadata": dict(self.users[user_id]["metadata"])},
        )

    def end_session(self, session_id):
        self.ended_sessions.append(session_id)

    # --- users ---

    def get_user(self, user_id):
        user = self.users[user_id]
        return IdentityUser(
            id=user_id, primary_email_address=user["email"], public_metadata=user["metadata"]
        )

    def update_user_metadata(self, user_id, public_metadata):
        if self.fail_metadata_update:
            raise _provider_error(500, "internal_error", "Something went wrong")
        self.users[user_id]["metadata"].update(public_metadata)
        return self.get_user(user_id)


@pytest.fixture()
def provider():
    return FakeIdentityProvider()


@pytest.fixture()
def app(provider):
    app = create_app("testing")
    app.extensions["identity_client"] = provider
    ctx = app.app_context()
    ctx.push()
    try:
        yield app
    finally:
        ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def session_token(app, provider):
    """Mint a provider-style session token for a user (cookie or bearer)."""

    def _mint(user_id: str) -> str:
        session_id = provider._new_session(user_id)
        with app.test_request_context():
            return provider.get_session_token(session_id)

    return _mint


@pytest.fixture()
def members_api(monkeypatch):
    """Capture member registrations; set ``status`` to simulate backend failures."""

    class _Response:
        def __init__(self, status_code, body):
            self.status_code = status_code
            self.ok = 200 <= status_code < 300
            self.reason = "OK" if self.ok else "Error"
            self._body = body

        def json(self):
            return self._body

    state = {"status": 201, "calls": []}

    def _post(url, headers=None, timeout=None, **kwargs):
        state["calls"].append({"url": url, "headers": headers})
        body = {
            "member": {"id": 7, "name": "محمد أحمد", "uni_id": 441234567},
            "already_exists": False,
        }
        return _Response(state["status"], body)

    monkeypatch.setattr("gdg_portal.core.members.client.requests.post", _post)
    return state
