"""Application configuration for the GDG membership portal."""

from __future__ import annotations

import os
from datetime import timedelta
from typing import Dict, Type

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name) or default
    return [item.strip() for item in raw.split(",") if item.strip()]


class BaseConfig:
    """Base configuration loaded for all environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me")
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = _env_flag("SESSION_COOKIE_SECURE")
    WTF_CSRF_ENABLED = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Hosted identity provider (sign-up, sign-in, codes, sessions, metadata)
    IDENTITY_API_BASE_URL = os.environ.get("IDENTITY_API_BASE_URL", "http://localhost:4000")
    IDENTITY_SECRET_KEY = os.environ.get("IDENTITY_SECRET_KEY", "")
    IDENTITY_TIMEOUT_SECONDS = int(os.environ.get("IDENTITY_TIMEOUT_SECONDS", "10"))

    # Session tokens are minted by the identity provider; we only verify them.
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)
    JWT_PUBLIC_KEY = os.environ.get("JWT_PUBLIC_KEY") or None
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_DECODE_ALGORITHMS = [JWT_ALGORITHM]
    JWT_DECODE_ISSUER = os.environ.get("IDENTITY_ISSUER") or None
    JWT_DECODE_LEEWAY = int(os.environ.get("JWT_DECODE_LEEWAY_SECONDS", "5"))
    JWT_TOKEN_LOCATION = ["cookies", "headers"]
    JWT_ACCESS_COOKIE_NAME = "__session"
    JWT_COOKIE_CSRF_PROTECT = False
    JWT_COOKIE_SECURE = SESSION_COOKIE_SECURE
    JWT_COOKIE_SAMESITE = SESSION_COOKIE_SAMESITE
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.environ.get("JWT_ACCESS_MINUTES", "15")))

    # Backend member API
    MEMBERS_API_BASE_URL = os.environ.get("MEMBERS_API_DEV_BASE_URL") or os.environ.get(
        "MEMBERS_API_BASE_URL", ""
    )
    MEMBERS_API_TIMEOUT_SECONDS = int(os.environ.get("MEMBERS_API_TIMEOUT_SECONDS", "10"))

    ALLOWED_REDIRECT_DOMAINS = _env_list(
        "ALLOWED_REDIRECT_DOMAINS", "localhost,gdg-q.com,event.gdg-q.com"
    )
    INSTITUTION_EMAIL_DOMAIN = os.environ.get("INSTITUTION_EMAIL_DOMAIN", "qu.edu.sa")
    UNIVERSITY_ID_LENGTH = int(os.environ.get("UNIVERSITY_ID_LENGTH", "9"))
    VERIFICATION_CODE_LENGTH = 6
    RESEND_COOLDOWN_SECONDS = int(os.environ.get("RESEND_COOLDOWN_SECONDS", "60"))
    DEFAULT_LANDING_ROUTE = "/user-profile"

    # Paths the access gate never evaluates (assets, health checks).
    ACCESS_GATE_EXEMPT_PATHS = ("/static/", "/health")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    ENV = "development"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "testing-secret"
    JWT_SECRET_KEY = "testing-jwt-secret"
    JWT_ALGORITHM = "HS256"
    JWT_DECODE_ALGORITHMS = ["HS256"]
    JWT_PUBLIC_KEY = None
    JWT_DECODE_ISSUER = None
    JWT_COOKIE_SECURE = False
    WTF_CSRF_ENABLED = False
    IDENTITY_API_BASE_URL = "http://identity.test"
    IDENTITY_SECRET_KEY = "sk_test"
    MEMBERS_API_BASE_URL = "http://members.test"
    ALLOWED_REDIRECT_DOMAINS = ["localhost", "gdg-q.com", "event.gdg-q.com"]


class ProductionConfig(BaseConfig):
    ENV = "production"
    SESSION_COOKIE_SECURE = True
    JWT_COOKIE_SECURE = True
    SESSION_COOKIE_SAMESITE = "Lax"


_PLACEHOLDER_SECRETS = ("", "change-me")


def check_production_secrets(config) -> None:
    """Refuse to start production with placeholder signing keys."""
    if config.get("ENV") != "production":
        return
    if config.get("SECRET_KEY") in _PLACEHOLDER_SECRETS:
        raise RuntimeError("SECRET_KEY must be set in production.")
    # Provider tokens are verified with the public key, or else with the shared secret.
    if not config.get("JWT_PUBLIC_KEY") and (
        not os.environ.get("JWT_SECRET_KEY") or config.get("JWT_SECRET_KEY") in _PLACEHOLDER_SECRETS
    ):
        raise RuntimeError("JWT_PUBLIC_KEY or JWT_SECRET_KEY must be set in production.")


config_by_name: Dict[str, Type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    # CI pipelines set APP_ENV=ci; map to testing defaults.
    "ci": TestingConfig,
}
