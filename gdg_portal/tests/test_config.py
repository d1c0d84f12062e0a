import pytest

from gdg_portal import create_app
from gdg_portal.config import ProductionConfig

pytestmark = pytest.mark.unit


@pytest.fixture()
def production(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "prod-session-secret")
    monkeypatch.setattr(ProductionConfig, "JWT_SECRET_KEY", "prod-session-secret")
    monkeypatch.setattr(ProductionConfig, "JWT_PUBLIC_KEY", None)
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    return monkeypatch


def test_production_refuses_placeholder_secret_key(production):
    production.setattr(ProductionConfig, "SECRET_KEY", "change-me")
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        create_app("production")


def test_production_requires_a_token_verification_key(production):
    # JWT_SECRET_KEY silently inherited from SECRET_KEY is not enough.
    with pytest.raises(RuntimeError, match="JWT_PUBLIC_KEY"):
        create_app("production")


def test_production_rejects_placeholder_jwt_secret(production):
    production.setenv("JWT_SECRET_KEY", "change-me")
    production.setattr(ProductionConfig, "JWT_SECRET_KEY", "change-me")
    with pytest.raises(RuntimeError, match="JWT_PUBLIC_KEY"):
        create_app("production")


def test_production_starts_with_explicit_jwt_secret(production):
    production.setenv("JWT_SECRET_KEY", "provider-shared-secret")
    production.setattr(ProductionConfig, "JWT_SECRET_KEY", "provider-shared-secret")
    app = create_app("production")
    assert app.config["JWT_COOKIE_SECURE"] is True


def test_production_starts_with_public_key(production):
    production.setattr(ProductionConfig, "JWT_PUBLIC_KEY", "-----BEGIN PUBLIC KEY-----\nabc\n-----END PUBLIC KEY-----")
    assert create_app("production").config["ENV"] == "production"


def test_testing_config_is_not_checked():
    assert create_app("testing").config["TESTING"] is True
