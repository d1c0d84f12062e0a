"""Backend member registration (best effort)."""

from __future__ import annotations

import logging
from typing import Optional

import requests
from flask import current_app
from pydantic import ValidationError

from gdg_portal.core.members.schemas import CreateMemberResponse

logger = logging.getLogger(__name__)


def create_member(session_token: str) -> Optional[CreateMemberResponse]:
    """Register the signed-in user as a member.

    The backend builds the member from the token's claims. Any failure is
    logged and returns None; callers continue regardless.
    """
    base_url = (current_app.config.get("MEMBERS_API_BASE_URL") or "").rstrip("/")
    if not base_url:
        logger.warning("MEMBERS_API_BASE_URL is not configured; skipping member creation")
        return None
    if not session_token:
        logger.error("Failed to retrieve session token; skipping member creation")
        return None

    try:
        resp = requests.post(
            f"{base_url}/members",
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {session_token}",
            },
            timeout=current_app.config.get("MEMBERS_API_TIMEOUT_SECONDS", 10),
        )
    except requests.RequestException as exc:
        logger.error("Failed to create member: %s", exc)
        return None

    if not resp.ok:
        logger.warning("Skipping member creation %s: %s", resp.status_code, resp.reason)
        return None

    try:
        data = CreateMemberResponse.model_validate(resp.json())
    except (ValueError, ValidationError) as exc:
        logger.warning("Unexpected member API response: %s", exc)
        return None

    logger.info("Created member %s (already_exists=%s)", data.member.id, data.already_exists)
    return data
