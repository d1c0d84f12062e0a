"""Landing, profile and health endpoints."""

from __future__ import annotations

from typing import Optional

from flask import Blueprint, jsonify, redirect

from gdg_portal.core.access.policy import PROFILE_ROUTE, SIGN_IN_ROUTE, landing_route
from gdg_portal.core.session.accessor import get_session_accessor
from gdg_portal.core.session.csrf import generate_csrf_token, rotate_csrf_token
from gdg_portal.core.utils.decorators import csrf_protected

pages_bp = Blueprint("pages", __name__)


def greeting(name: Optional[str]) -> str:
    return f"حياك، {name}" if name else "Welcome!"


@pages_bp.get("/")
def index():
    # The access gate normally answers first; this covers exempted setups.
    return redirect(landing_route(get_session_accessor().current()))


@pages_bp.get(PROFILE_ROUTE)
def user_profile():
    state = get_session_accessor().current()
    claims = state.claims
    return jsonify(
        {
            "ok": True,
            "page": "user-profile",
            "greeting": greeting(claims.get("fullArabicName")),
            "profile": {
                "university_id": claims.get("uni_id"),
                "full_arabic_name": claims.get("fullArabicName"),
                "gender": claims.get("gender"),
                "uni_level": claims.get("uniLevel"),
                "uni_college": claims.get("uniCollege"),
            },
            "csrf_token": generate_csrf_token(),
        }
    )


@pages_bp.delete(PROFILE_ROUTE)
@csrf_protected
def sign_out():
    get_session_accessor().sign_out()
    return jsonify({"ok": True, "redirect_to": SIGN_IN_ROUTE, "csrf_token": rotate_csrf_token()})


@pages_bp.get("/health")
def health():
    return {"ok": True}, 200
