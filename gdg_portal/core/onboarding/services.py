"""Onboarding submission: metadata write, session refresh, member registration, redirect."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from flask import current_app

from gdg_portal.core.access.redirects import safe_redirect_target
from gdg_portal.core.events.event_bus import (
    MEMBER_REGISTRATION_SKIPPED,
    ONBOARDING_COMPLETED,
    event_bus,
)
from gdg_portal.core.identity.client import get_identity_client
from gdg_portal.core.identity.errors import IdentityProviderError
from gdg_portal.core.members.client import create_member
from gdg_portal.core.members.schemas import CreateMemberResponse
from gdg_portal.core.onboarding.constants import (
    METADATA_UPDATE_FAILED_MESSAGE,
    SESSION_REFRESH_FAILED_MESSAGE,
)
from gdg_portal.core.onboarding.schemas import OnboardingRequest
from gdg_portal.core.session.accessor import SessionAccessor

logger = logging.getLogger(__name__)


class OnboardingError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass
class OnboardingResult:
    redirect_to: str
    member: Optional[CreateMemberResponse] = None


def university_id_from_email(email: Optional[str]) -> str:
    """Local part of the institutional address, e.g. ``441234567@qu.edu.sa`` -> ``441234567``."""
    if not email or "@" not in email:
        return ""
    return email.split("@", 1)[0]


def submit_onboarding(
    payload: OnboardingRequest,
    accessor: SessionAccessor,
    redirect_url: Optional[str] = None,
) -> OnboardingResult:
    state = accessor.current()
    if not state.is_authenticated:
        raise OnboardingError("not_authenticated", "Not authenticated")

    client = get_identity_client()
    try:
        user = client.get_user(state.user_id)
        client.update_user_metadata(
            state.user_id, payload.to_metadata(university_id_from_email(user.primary_email_address))
        )
    except IdentityProviderError as exc:
        logger.error("Error updating user metadata for %s: %s", state.user_id, exc)
        raise OnboardingError("metadata_update_failed", METADATA_UPDATE_FAILED_MESSAGE) from exc

    # The cached token predates the metadata write; without a fresh one the gate
    # would keep sending the user back to onboarding.
    try:
        refreshed = accessor.refresh()
    except IdentityProviderError as exc:
        logger.error("Session refresh after onboarding failed for %s: %s", state.user_id, exc)
        raise OnboardingError("session_refresh_failed", SESSION_REFRESH_FAILED_MESSAGE) from exc

    member = create_member(refreshed.token or "")
    if member is None:
        event_bus.publish(MEMBER_REGISTRATION_SKIPPED, {"user_id": state.user_id})

    event_bus.publish(
        ONBOARDING_COMPLETED,
        {"user_id": state.user_id, "member_id": member.member.id if member else None},
    )
    logger.info("Onboarding complete for %s", state.user_id)
    default = current_app.config.get("DEFAULT_LANDING_ROUTE", "/user-profile")
    return OnboardingResult(redirect_to=safe_redirect_target(redirect_url, default), member=member)
