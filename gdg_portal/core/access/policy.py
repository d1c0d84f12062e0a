"""Route access policy shared by the request gate and page-level guards.

Every ``(route, session)`` pair maps to exactly one ``AccessOutcome``:

1. auth routes (sign-in, sign-up, forgot-password and their sub-paths) are
   always allowed;
2. the onboarding route needs a signed-in user;
3. the profile route needs a signed-in user who finished onboarding;
4. the root route and
5. every other route send the caller to the page their state entitles them
   to (sign-up, onboarding or profile), never to the requested path.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

ROOT_ROUTE = "/"
SIGN_IN_ROUTE = "/sign-in"
SIGN_UP_ROUTE = "/sign-up"
SIGN_UP_TASKS_ROUTE = "/sign-up/tasks"
FORGOT_PASSWORD_ROUTE = "/forgot-password"
ONBOARDING_ROUTE = "/onboarding"
PROFILE_ROUTE = "/user-profile"

AUTH_ROUTES = (SIGN_IN_ROUTE, SIGN_UP_ROUTE, FORGOT_PASSWORD_ROUTE)


class SessionLike(Protocol):
    user_id: Optional[str]
    onboarding_complete: bool


class RouteKind(str, Enum):
    AUTH = "auth"
    ONBOARDING = "onboarding"
    PROFILE = "profile"
    ROOT = "root"
    OTHER = "other"


class AccessOutcome(str, Enum):
    ALLOW = "allow"
    REDIRECT_SIGN_UP = "redirect-sign-up"
    REDIRECT_SIGN_IN = "redirect-sign-in"
    REDIRECT_ONBOARDING = "redirect-onboarding"
    REDIRECT_PROFILE = "redirect-profile"


OUTCOME_LOCATIONS = {
    AccessOutcome.REDIRECT_SIGN_UP: SIGN_UP_ROUTE,
    AccessOutcome.REDIRECT_SIGN_IN: SIGN_IN_ROUTE,
    AccessOutcome.REDIRECT_ONBOARDING: ONBOARDING_ROUTE,
    AccessOutcome.REDIRECT_PROFILE: PROFILE_ROUTE,
}


@dataclass(frozen=True)
class AccessDecision:
    outcome: AccessOutcome

    @property
    def allowed(self) -> bool:
        return self.outcome is AccessOutcome.ALLOW

    @property
    def location(self) -> Optional[str]:
        return OUTCOME_LOCATIONS.get(self.outcome)


def _normalize(path: str) -> str:
    if not path:
        return ROOT_ROUTE
    return path.rstrip("/") or ROOT_ROUTE


def classify_route(path: str) -> RouteKind:
    normalized = _normalize(path)
    if normalized == ROOT_ROUTE:
        return RouteKind.ROOT
    if any(normalized == route or normalized.startswith(route + "/") for route in AUTH_ROUTES):
        return RouteKind.AUTH
    if normalized == ONBOARDING_ROUTE:
        return RouteKind.ONBOARDING
    if normalized == PROFILE_ROUTE:
        return RouteKind.PROFILE
    return RouteKind.OTHER


def landing_outcome(state: SessionLike) -> AccessOutcome:
    """The page a session is entitled to: sign-up, onboarding or profile."""
    if not state.user_id:
        return AccessOutcome.REDIRECT_SIGN_UP
    if not state.onboarding_complete:
        return AccessOutcome.REDIRECT_ONBOARDING
    return AccessOutcome.REDIRECT_PROFILE


def landing_route(state: SessionLike) -> str:
    return OUTCOME_LOCATIONS[landing_outcome(state)]


def decide_access(path: str, state: SessionLike) -> AccessDecision:
    kind = classify_route(path)
    if kind is RouteKind.AUTH:
        return AccessDecision(AccessOutcome.ALLOW)
    if kind is RouteKind.ONBOARDING:
        if not state.user_id:
            return AccessDecision(AccessOutcome.REDIRECT_SIGN_UP)
        return AccessDecision(AccessOutcome.ALLOW)
    if kind is RouteKind.PROFILE:
        outcome = landing_outcome(state)
        if outcome is AccessOutcome.REDIRECT_PROFILE:
            return AccessDecision(AccessOutcome.ALLOW)
        return AccessDecision(outcome)
    # Root and unknown routes
    return AccessDecision(landing_outcome(state))


__all__ = [
    "AUTH_ROUTES",
    "AccessDecision",
    "AccessOutcome",
    "FORGOT_PASSWORD_ROUTE",
    "ONBOARDING_ROUTE",
    "PROFILE_ROUTE",
    "ROOT_ROUTE",
    "RouteKind",
    "SIGN_IN_ROUTE",
    "SIGN_UP_ROUTE",
    "SIGN_UP_TASKS_ROUTE",
    "classify_route",
    "decide_access",
    "landing_outcome",
    "landing_route",
]
