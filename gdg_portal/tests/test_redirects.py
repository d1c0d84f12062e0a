import pytest

from gdg_portal.core.access.redirects import (
    is_allowed_redirect_url,
    safe_redirect_target,
    with_redirect_param,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "url",
    [
        "http://localhost:3000/events",
        "https://gdg-q.com",
        "https://event.gdg-q.com/register?id=3",
        "https://www.gdg-q.com/",
        "https://a.b.event.gdg-q.com/",
        "https://GDG-Q.com/path",
    ],
)
def test_allowed_hosts(url):
    assert is_allowed_redirect_url(url)


@pytest.mark.parametrize(
    "url",
    [
        None,
        "",
        "/user-profile",
        "//evil.com",
        "not a url",
        "javascript:alert(1)",
        "https://evil.com",
        "https://gdg-q.com.evil.com",
        "https://evilgdg-q.com",
        "https://localhost.evil.com",
        "ftp://gdg-q.com/file",
        "https://[::1",
        "https://evil.com\\@gdg-q.com/",
        "https://evil.com\\.gdg-q.com/",
        "https://evil.com\t.gdg-q.com/",
        "https://gdg-q.com\n@evil.com/",
        "https://\u0435vent.gdg-q.com/",
    ],
)
def test_rejected_urls(url):
    assert not is_allowed_redirect_url(url)


def test_explicit_domains_override_defaults():
    assert is_allowed_redirect_url("https://example.org", allowed_domains=["example.org"])
    assert not is_allowed_redirect_url("https://gdg-q.com", allowed_domains=["example.org"])


def test_config_domains_used_inside_app(app):
    app.config["ALLOWED_REDIRECT_DOMAINS"] = ["example.org"]
    assert is_allowed_redirect_url("https://sub.example.org/x")
    assert not is_allowed_redirect_url("https://event.gdg-q.com")


def test_safe_redirect_target_falls_back():
    assert safe_redirect_target("https://event.gdg-q.com/a", "/user-profile") == "https://event.gdg-q.com/a"
    assert safe_redirect_target("https://evil.com", "/user-profile") == "/user-profile"
    assert safe_redirect_target(None, "/onboarding") == "/onboarding"


def test_with_redirect_param():
    assert with_redirect_param("/onboarding", None) == "/onboarding"
    assert (
        with_redirect_param("/onboarding", "https://event.gdg-q.com/a?b=1")
        == "/onboarding?redirect_url=https%3A%2F%2Fevent.gdg-q.com%2Fa%3Fb%3D1"
    )
