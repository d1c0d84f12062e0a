"""Onboarding controllers (JSON)."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from gdg_portal.core.access.policy import SIGN_IN_ROUTE
from gdg_portal.core.access.redirects import REDIRECT_PARAM
from gdg_portal.core.identity.client import get_identity_client
from gdg_portal.core.identity.errors import IdentityProviderError
from gdg_portal.core.onboarding.constants import COLLEGE_OTHER, GENDERS, QU_COLLEGES, UNI_LEVELS
from gdg_portal.core.onboarding.schemas import OnboardingRequest
from gdg_portal.core.onboarding.services import (
    OnboardingError,
    submit_onboarding,
    university_id_from_email,
)
from gdg_portal.core.session.accessor import get_session_accessor
from gdg_portal.core.session.csrf import generate_csrf_token, rotate_csrf_token
from gdg_portal.core.utils.decorators import csrf_protected
from gdg_portal.core.utils.validation import jsonable_errors

onboarding_bp = Blueprint("onboarding", __name__)


@onboarding_bp.get("")
def page():
    state = get_session_accessor().current()
    try:
        user = get_identity_client().get_user(state.user_id)
        university_id = university_id_from_email(user.primary_email_address)
    except IdentityProviderError:
        university_id = ""
    return jsonify(
        {
            "ok": True,
            "page": "onboarding",
            "university_id": university_id,
            "colleges": list(QU_COLLEGES),
            "college_other": COLLEGE_OTHER,
            "levels": list(UNI_LEVELS),
            "genders": list(GENDERS),
            "redirect_url": request.args.get(REDIRECT_PARAM),
            "csrf_token": generate_csrf_token(),
        }
    )


@onboarding_bp.post("")
@csrf_protected
def submit():
    payload = request.get_json(silent=True) or {}
    try:
        data = OnboardingRequest.model_validate(payload)
    except ValidationError as exc:
        return jsonify({"ok": False, "error": "bad_request", "details": jsonable_errors(exc)}), 400

    try:
        result = submit_onboarding(data, get_session_accessor(), request.args.get(REDIRECT_PARAM))
    except OnboardingError as exc:
        status = 401 if exc.code == "not_authenticated" else 502
        return jsonify({"ok": False, "error": exc.code, "message": exc.message}), status

    return jsonify(
        {
            "ok": True,
            "redirect_to": result.redirect_to,
            "member_registered": result.member is not None,
        }
    )


@onboarding_bp.delete("")
@csrf_protected
def sign_out():
    get_session_accessor().sign_out()
    return jsonify({"ok": True, "redirect_to": SIGN_IN_ROUTE, "csrf_token": rotate_csrf_token()})
