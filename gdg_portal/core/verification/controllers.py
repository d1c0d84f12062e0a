"""Sign-up, sign-in and forgot-password controllers (JSON)."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from flask import Blueprint, jsonify, redirect, request, session
from pydantic import ValidationError

from gdg_portal.core.access.policy import (
    FORGOT_PASSWORD_ROUTE,
    ONBOARDING_ROUTE,
    SIGN_IN_ROUTE,
    SIGN_UP_ROUTE,
    SIGN_UP_TASKS_ROUTE,
    landing_route,
)
from gdg_portal.core.access.redirects import REDIRECT_PARAM, safe_redirect_target, with_redirect_param
from gdg_portal.core.identity.errors import IdentityProviderError
from gdg_portal.core.identity.schemas import ActiveSession
from gdg_portal.core.session.accessor import get_session_accessor
from gdg_portal.core.session.csrf import generate_csrf_token, rotate_csrf_token
from gdg_portal.core.session.state import SessionState
from gdg_portal.core.utils.decorators import csrf_protected
from gdg_portal.core.utils.validation import jsonable_errors
from gdg_portal.core.verification.flow import (
    GENERIC_ERROR_MESSAGE,
    FlowError,
    FlowKind,
    VerificationFlow,
)
from gdg_portal.core.verification.schemas import (
    CodeRequest,
    ForgotPasswordRequest,
    SignInRequest,
    SignUpRequest,
)
from gdg_portal.core.verification.store import discard_flow, load_flow, new_flow, save_flow

logger = logging.getLogger(__name__)

PENDING_TASK_KEY = "pending_session_task"

_ERROR_STATUS = {
    FlowError.VALIDATION: 400,
    FlowError.INVALID_CODE: 400,
    FlowError.INVALID_CREDENTIALS: 401,
    FlowError.IDENTIFIER_NOT_FOUND: 404,
    FlowError.IDENTIFIER_TAKEN: 409,
    FlowError.SESSION_MISSING: 409,
    FlowError.UNEXPECTED: 502,
}

IdentifierParser = Callable[[dict], Tuple[str, Optional[str]]]


def _parse_sign_up(payload: dict) -> Tuple[str, Optional[str]]:
    data = SignUpRequest.model_validate(payload)
    return data.university_id, data.password


def _parse_sign_in(payload: dict) -> Tuple[str, Optional[str]]:
    data = SignInRequest.model_validate(payload)
    return data.identifier, data.password


def _parse_forgot_password(payload: dict) -> Tuple[str, Optional[str]]:
    data = ForgotPasswordRequest.model_validate(payload)
    return data.university_id, None


def _redirect_url() -> Optional[str]:
    return request.args.get(REDIRECT_PARAM) or None


def _bad_request(exc: ValidationError):
    return jsonify({"ok": False, "error": "bad_request", "details": jsonable_errors(exc)}), 400


def _flow_response(flow: VerificationFlow, **extra):
    body = {
        "ok": flow.error is None,
        "flow": flow.snapshot(),
        "error": flow.error.value if flow.error else None,
        "message": flow.message,
    }
    body.update(extra)
    status = _ERROR_STATUS[flow.error] if flow.error else 200
    return jsonify(body), status


def _completion_target(
    kind: FlowKind, active: ActiveSession, state: SessionState, redirect_url: Optional[str]
) -> str:
    if kind is FlowKind.SIGN_UP:
        if active.current_task:
            logger.info("Session task pending after sign-up: %s", active.current_task.key)
            session[PENDING_TASK_KEY] = active.current_task.key
            return SIGN_UP_TASKS_ROUTE
        return with_redirect_param(ONBOARDING_ROUTE, redirect_url)
    return safe_redirect_target(redirect_url, landing_route(state))


def _complete(flow: VerificationFlow):
    """Establish the new session and tell the client where to go next."""
    discard_flow(flow.kind)
    accessor = get_session_accessor()
    try:
        active = accessor.establish(flow.session_id)
    except IdentityProviderError as exc:
        logger.error("Failed to activate session after %s: %s", flow.kind.value, exc)
        return (
            jsonify(
                {
                    "ok": False,
                    "error": FlowError.UNEXPECTED.value,
                    "message": GENERIC_ERROR_MESSAGE,
                    "flow": flow.snapshot(),
                }
            ),
            502,
        )
    redirect_to = _completion_target(flow.kind, active, accessor.current(), _redirect_url())
    return jsonify(
        {
            "ok": True,
            "flow": flow.snapshot(),
            "redirect_to": redirect_to,
            "csrf_token": rotate_csrf_token(),
        }
    )


def build_flow_blueprint(
    name: str,
    kind: FlowKind,
    parse_identifier: IdentifierParser,
    links: Callable[[Optional[str]], dict],
) -> Blueprint:
    """One blueprint per auth route; the same handlers drive every flow kind."""
    bp = Blueprint(name, __name__)

    @bp.get("")
    def page():
        state = get_session_accessor().current()
        redirect_url = _redirect_url()
        if state.is_authenticated:
            return redirect(safe_redirect_target(redirect_url, landing_route(state)))
        flow = load_flow(kind)
        return jsonify(
            {
                "ok": True,
                "page": kind.value,
                "flow": flow.snapshot(),
                "redirect_url": redirect_url,
                "links": links(redirect_url),
                "csrf_token": generate_csrf_token(),
            }
        )

    @bp.post("")
    @csrf_protected
    def start():
        payload = request.get_json(silent=True) or {}
        try:
            identifier, password = parse_identifier(payload)
        except ValidationError as exc:
            return _bad_request(exc)
        flow = new_flow(kind)
        flow.submit_identifier(identifier, password)
        if flow.is_complete:
            return _complete(flow)
        save_flow(flow)
        return _flow_response(flow)

    @bp.post("/code")
    @csrf_protected
    def code():
        payload = request.get_json(silent=True) or {}
        try:
            data = CodeRequest.model_validate(payload)
        except ValidationError as exc:
            return _bad_request(exc)
        flow = load_flow(kind)
        if not data.submit:
            flow.enter_code(data.code)
            save_flow(flow)
            return _flow_response(flow)
        flow.submit_code(data.code, data.password)
        if flow.is_complete:
            return _complete(flow)
        save_flow(flow)
        return _flow_response(flow)

    @bp.post("/resend")
    @csrf_protected
    def resend():
        flow = load_flow(kind)
        resent = flow.resend()
        save_flow(flow)
        return _flow_response(flow, resent=resent)

    @bp.post("/back")
    @csrf_protected
    def back():
        flow = load_flow(kind)
        flow.back()
        discard_flow(kind)
        return _flow_response(flow)

    return bp


sign_up_bp = build_flow_blueprint(
    "sign_up",
    FlowKind.SIGN_UP,
    _parse_sign_up,
    lambda redirect_url: {"sign_in": with_redirect_param(SIGN_IN_ROUTE, redirect_url)},
)
sign_in_bp = build_flow_blueprint(
    "sign_in",
    FlowKind.SIGN_IN,
    _parse_sign_in,
    lambda redirect_url: {
        "sign_up": with_redirect_param(SIGN_UP_ROUTE, redirect_url),
        "forgot_password": FORGOT_PASSWORD_ROUTE,
    },
)
forgot_password_bp = build_flow_blueprint(
    "forgot_password",
    FlowKind.PASSWORD_RESET,
    _parse_forgot_password,
    lambda redirect_url: {"sign_in": SIGN_IN_ROUTE},
)


@sign_up_bp.get("/tasks")
def sign_up_tasks():
    state = get_session_accessor().current()
    if not state.is_authenticated:
        return redirect(SIGN_UP_ROUTE)
    task = session.get(PENDING_TASK_KEY)
    if not task:
        return redirect(landing_route(state))
    return jsonify(
        {
            "ok": True,
            "page": "sign-up-tasks",
            "task": task,
            "continue_to": landing_route(state),
        }
    )
