from types import SimpleNamespace

import pytest

from gdg_portal.core.access.policy import (
    AccessOutcome,
    RouteKind,
    classify_route,
    decide_access,
    landing_route,
)

pytestmark = pytest.mark.unit

ANON = SimpleNamespace(user_id=None, onboarding_complete=False)
# A token without a subject never counts as signed in, whatever its claims say.
ANON_FLAGGED = SimpleNamespace(user_id=None, onboarding_complete=True)
NEW_USER = SimpleNamespace(user_id="user_1", onboarding_complete=False)
MEMBER = SimpleNamespace(user_id="user_1", onboarding_complete=True)

ALLOW = AccessOutcome.ALLOW
SIGN_UP = AccessOutcome.REDIRECT_SIGN_UP
ONBOARD = AccessOutcome.REDIRECT_ONBOARDING
PROFILE = AccessOutcome.REDIRECT_PROFILE

CASES = [
    # path, (anon, anon with flag, signed in, onboarded)
    ("/sign-in", (ALLOW, ALLOW, ALLOW, ALLOW)),
    ("/sign-in/factor-two", (ALLOW, ALLOW, ALLOW, ALLOW)),
    ("/sign-up", (ALLOW, ALLOW, ALLOW, ALLOW)),
    ("/sign-up/tasks", (ALLOW, ALLOW, ALLOW, ALLOW)),
    ("/forgot-password", (ALLOW, ALLOW, ALLOW, ALLOW)),
    ("/onboarding", (SIGN_UP, SIGN_UP, ALLOW, ALLOW)),
    ("/onboarding/", (SIGN_UP, SIGN_UP, ALLOW, ALLOW)),
    ("/user-profile", (SIGN_UP, SIGN_UP, ONBOARD, ALLOW)),
    ("/", (SIGN_UP, SIGN_UP, ONBOARD, PROFILE)),
    ("/events/2024", (SIGN_UP, SIGN_UP, ONBOARD, PROFILE)),
    ("/sign-inx", (SIGN_UP, SIGN_UP, ONBOARD, PROFILE)),
    ("/onboarding/extra", (SIGN_UP, SIGN_UP, ONBOARD, PROFILE)),
]


@pytest.mark.parametrize("path,expected", CASES)
def test_decision_table(path, expected):
    states = (ANON, ANON_FLAGGED, NEW_USER, MEMBER)
    got = tuple(decide_access(path, state).outcome for state in states)
    assert got == expected


def test_classify_route():
    assert classify_route("/") is RouteKind.ROOT
    assert classify_route("") is RouteKind.ROOT
    assert classify_route("/forgot-password/reset") is RouteKind.AUTH
    assert classify_route("/user-profile/") is RouteKind.PROFILE
    assert classify_route("/favicon.ico") is RouteKind.OTHER


def test_decision_locations():
    assert decide_access("/", ANON).location == "/sign-up"
    assert decide_access("/", NEW_USER).location == "/onboarding"
    assert decide_access("/", MEMBER).location == "/user-profile"
    assert decide_access("/sign-in", ANON).location is None
    assert decide_access("/sign-in", ANON).allowed


def test_landing_route():
    assert landing_route(ANON) == "/sign-up"
    assert landing_route(NEW_USER) == "/onboarding"
    assert landing_route(MEMBER) == "/user-profile"
