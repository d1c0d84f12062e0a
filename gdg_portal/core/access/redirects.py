"""Redirect allowlist guarding every caller-supplied ``redirect_url``."""

from __future__ import annotations

import logging
from typing import Iterable, Optional
from urllib.parse import urlencode, urlsplit

from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

ALLOWED_REDIRECT_DOMAINS = (
    # Local development
    "localhost",
    "gdg-q.com",
    # Production subdomains
    "event.gdg-q.com",
)

REDIRECT_PARAM = "redirect_url"


def _configured_domains() -> Iterable[str]:
    if has_app_context():
        return current_app.config.get("ALLOWED_REDIRECT_DOMAINS") or ALLOWED_REDIRECT_DOMAINS
    return ALLOWED_REDIRECT_DOMAINS


def is_allowed_redirect_url(url: Optional[str], allowed_domains: Optional[Iterable[str]] = None) -> bool:
    """Return True when ``url`` is absolute and its host is an allowlisted domain or subdomain.

    Anything that does not parse as an absolute http(s) URL fails closed.
    """
    if not url or not isinstance(url, str):
        return False
    # Browsers treat a backslash as "/" and strip control characters; urlsplit does not.
    if not url.isascii() or not url.isprintable() or "\\" in url:
        return False
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not hostname:
        return False

    domains = allowed_domains if allowed_domains is not None else _configured_domains()
    return any(hostname == domain or hostname.endswith(f".{domain}") for domain in domains)


def safe_redirect_target(url: Optional[str], default: str) -> str:
    """Return ``url`` if allowlisted, otherwise ``default``."""
    if not url:
        return default
    if is_allowed_redirect_url(url):
        return url
    logger.warning("Redirect URL blocked by allowlist: %s", url)
    return default


def with_redirect_param(path: str, redirect_url: Optional[str]) -> str:
    """Carry ``redirect_url`` onto an internal path as a query parameter."""
    if not redirect_url:
        return path
    return f"{path}?{urlencode({REDIRECT_PARAM: redirect_url})}"


__all__ = [
    "ALLOWED_REDIRECT_DOMAINS",
    "REDIRECT_PARAM",
    "is_allowed_redirect_url",
    "safe_redirect_target",
    "with_redirect_param",
]
