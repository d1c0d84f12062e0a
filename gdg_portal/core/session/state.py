"""Read-only projection of the identity provider's session claims."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from flask_jwt_extended import decode_token, get_jwt, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from gdg_portal.core.identity.constants import ERROR_INVALID_SESSION_TOKEN
from gdg_portal.core.identity.errors import IdentityProviderError

logger = logging.getLogger(__name__)

METADATA_CLAIM = "metadata"
SESSION_ID_CLAIM = "sid"


@dataclass(frozen=True)
class SessionState:
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    claims: Mapping[str, Any] = field(default_factory=dict)
    token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def onboarding_complete(self) -> bool:
        return bool(self.claims.get("onboardingComplete"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "is_authenticated": self.is_authenticated,
            "onboarding_complete": self.onboarding_complete,
        }


ANONYMOUS = SessionState()


def state_from_claims(claims: Mapping[str, Any], token: Optional[str] = None) -> SessionState:
    if not claims:
        return ANONYMOUS
    subject = claims.get("sub")
    metadata = claims.get(METADATA_CLAIM)
    return SessionState(
        user_id=str(subject) if subject else None,
        session_id=claims.get(SESSION_ID_CLAIM),
        claims=dict(metadata) if isinstance(metadata, Mapping) else {},
        token=token,
    )


def state_from_token(token: str) -> SessionState:
    """Decode a freshly minted session token into a state."""
    try:
        claims = decode_token(token)
    except (JWTExtendedException, PyJWTError) as exc:
        raise IdentityProviderError.single(ERROR_INVALID_SESSION_TOKEN, str(exc)) from exc
    return state_from_claims(claims, token=token)


def read_session_state() -> SessionState:
    """Project the current request's session token; never raises."""
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError) as exc:
        logger.debug("Ignoring unusable session token: %s", exc)
        return ANONYMOUS
    return state_from_claims(get_jwt())


__all__ = ["ANONYMOUS", "SessionState", "read_session_state", "state_from_claims", "state_from_token"]
