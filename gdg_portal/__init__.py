"""GDG membership portal application factory."""

from __future__ import annotations

import logging
import os
from typing import Optional

from flask import Flask

from gdg_portal.config import check_production_secrets, config_by_name
from gdg_portal.core.access.gate import register_access_gate
from gdg_portal.core.events.event_bus import event_bus
from gdg_portal.core.session.accessor import init_session_accessor
from gdg_portal.extensions import init_extensions


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the portal Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()

    app = Flask(__name__)
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)
    check_production_secrets(app.config)

    _configure_logging(app)
    init_extensions(app)
    init_session_accessor(app)
    register_access_gate(app)
    _register_blueprints(app)
    _register_error_handlers(app)

    app.extensions["event_bus"] = event_bus
    return app


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    logging.getLogger("gdg_portal").setLevel(level)


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from gdg_portal.core.onboarding.controllers import onboarding_bp  # local import to avoid circulars
    from gdg_portal.core.pages.controllers import pages_bp
    from gdg_portal.core.verification.controllers import (
        forgot_password_bp,
        sign_in_bp,
        sign_up_bp,
    )

    app.register_blueprint(sign_up_bp, url_prefix="/sign-up")
    app.register_blueprint(sign_in_bp, url_prefix="/sign-in")
    app.register_blueprint(forgot_password_bp, url_prefix="/forgot-password")
    app.register_blueprint(onboarding_bp, url_prefix="/onboarding")
    app.register_blueprint(pages_bp)


def _register_error_handlers(app: Flask) -> None:
    """Basic JSON error responses."""
    from werkzeug.exceptions import HTTPException

    from gdg_portal.core.identity.errors import IdentityProviderError

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return {"ok": False, "error": exc.description}, exc.code

    @app.errorhandler(IdentityProviderError)
    def _identity_error(exc: IdentityProviderError):
        app.logger.error("Identity provider error: %s", exc)
        return {"ok": False, "error": exc.first_code or "identity_provider_error"}, 502

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        # In debug/testing, surface the exception message to speed up diagnosis
        if app.debug or app.testing:
            return {"ok": False, "error": str(exc)}, 500
        return {"ok": False, "error": "unexpected_error"}, 500
