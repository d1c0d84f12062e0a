"""Shared extensions for the portal application."""

from flask_jwt_extended import JWTManager

# Verifies identity-provider session tokens; issuance stays with the provider.
jwt = JWTManager()


def init_extensions(app) -> None:
    """Initialize all extensions with the Flask app."""
    jwt.init_app(app)
