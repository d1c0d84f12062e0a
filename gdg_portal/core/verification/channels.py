"""Identity provider channels behind each verification flow kind."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from flask import current_app

from gdg_portal.core.identity.client import IdentityClient, get_identity_client
from gdg_portal.core.identity.constants import (
    ERROR_CODE_INCORRECT,
    ERROR_IDENTIFIER_EXISTS,
    ERROR_IDENTIFIER_NOT_FOUND,
    ERROR_PASSWORD_INCORRECT,
    ERROR_RESOURCE_NOT_FOUND,
    STATUS_COMPLETE,
    STATUS_NEEDS_SECOND_FACTOR,
    STRATEGY_RESET_PASSWORD_EMAIL_CODE,
)
from gdg_portal.core.identity.errors import IdentityProviderError
from gdg_portal.core.verification.flow import (
    GENERIC_ERROR_MESSAGE,
    SESSION_MISSING_MESSAGE,
    FlowError,
    FlowFailure,
    FlowKind,
    SendResult,
)

logger = logging.getLogger(__name__)

FACTOR_CONTEXT_KEY = "email_address_id"
MIN_PASSWORD_LENGTH = 8


def institutional_email(university_id: str, domain: str) -> str:
    return f"{university_id}@{domain}"


def _unexpected(exc: IdentityProviderError) -> FlowFailure:
    return FlowFailure(FlowError.UNEXPECTED, exc.first_long_message or exc.first_message or GENERIC_ERROR_MESSAGE)


def _verification_failure(exc: IdentityProviderError) -> FlowFailure:
    if exc.has_code(ERROR_CODE_INCORRECT):
        return FlowFailure(
            FlowError.INVALID_CODE, exc.first_long_message or exc.first_message or "Incorrect code"
        )
    if exc.has_code(ERROR_RESOURCE_NOT_FOUND):
        return FlowFailure(FlowError.SESSION_MISSING, SESSION_MISSING_MESSAGE)
    return FlowFailure(FlowError.UNEXPECTED, exc.first_long_message or GENERIC_ERROR_MESSAGE)


class SignUpChannel:
    """Email verification for a new account on the institutional domain."""

    kind = FlowKind.SIGN_UP

    def __init__(self, client: IdentityClient, email_domain: str) -> None:
        self.client = client
        self.email_domain = email_domain

    def send(self, identifier: str, password: Optional[str]) -> SendResult:
        email = institutional_email(identifier, self.email_domain)
        try:
            attempt = self.client.create_sign_up(email, password or "")
            self.client.prepare_sign_up_verification(attempt.id)
        except IdentityProviderError as exc:
            if exc.has_code(ERROR_IDENTIFIER_EXISTS) or "taken" in (exc.first_message or ""):
                raise FlowFailure(
                    FlowError.IDENTIFIER_TAKEN,
                    "An account associated with this email already exists. Please sign in instead.",
                ) from exc
            raise _unexpected(exc) from exc
        return SendResult(attempt_id=attempt.id, identifier=email)

    def resend(self, attempt_id: str, identifier: str, context: Dict[str, Any]) -> SendResult:
        try:
            self.client.prepare_sign_up_verification(attempt_id)
        except IdentityProviderError as exc:
            raise _verification_failure(exc) from exc
        return SendResult(attempt_id=attempt_id, identifier=identifier, context=context)

    def verify(self, attempt_id: str, code: str, password: Optional[str], context: Dict[str, Any]) -> str:
        try:
            attempt = self.client.attempt_sign_up_verification(attempt_id, code)
        except IdentityProviderError as exc:
            raise _verification_failure(exc) from exc
        if attempt.status != STATUS_COMPLETE or not attempt.created_session_id:
            logger.error("Sign-up verification not complete: %s", attempt.status)
            raise FlowFailure(FlowError.UNEXPECTED, "Unable to complete verification. Please try again.")
        return attempt.created_session_id


class SignInChannel:
    """Password sign-in with an email-code second factor when the account requires one."""

    kind = FlowKind.SIGN_IN

    def __init__(self, client: IdentityClient) -> None:
        self.client = client

    def send(self, identifier: str, password: Optional[str]) -> SendResult:
        try:
            attempt = self.client.create_sign_in(identifier, password=password or "")
        except IdentityProviderError as exc:
            if exc.has_code(ERROR_PASSWORD_INCORRECT, ERROR_IDENTIFIER_NOT_FOUND):
                raise FlowFailure(FlowError.INVALID_CREDENTIALS, "Invalid email or password") from exc
            raise _unexpected(exc) from exc

        if attempt.status == STATUS_COMPLETE:
            if not attempt.created_session_id:
                logger.error("Sign-in complete but no session id returned")
                raise FlowFailure(FlowError.UNEXPECTED, "Error creating session.")
            return SendResult(attempt_id=attempt.id, identifier=identifier, session_id=attempt.created_session_id)

        if attempt.status != STATUS_NEEDS_SECOND_FACTOR:
            raise FlowFailure(FlowError.UNEXPECTED, "Unable to complete sign in.")

        factor = attempt.email_code_second_factor()
        if factor is None or not factor.email_address_id:
            raise FlowFailure(FlowError.UNEXPECTED, "Unable to send verification code.")
        context = {FACTOR_CONTEXT_KEY: factor.email_address_id}
        return self.resend(attempt.id, identifier, context)

    def resend(self, attempt_id: str, identifier: str, context: Dict[str, Any]) -> SendResult:
        email_address_id = context.get(FACTOR_CONTEXT_KEY)
        if not email_address_id:
            raise FlowFailure(FlowError.SESSION_MISSING, SESSION_MISSING_MESSAGE)
        try:
            self.client.prepare_second_factor(attempt_id, email_address_id)
        except IdentityProviderError as exc:
            raise _verification_failure(exc) from exc
        return SendResult(attempt_id=attempt_id, identifier=identifier, context=context)

    def verify(self, attempt_id: str, code: str, password: Optional[str], context: Dict[str, Any]) -> str:
        try:
            attempt = self.client.attempt_second_factor(attempt_id, code)
        except IdentityProviderError as exc:
            raise _verification_failure(exc) from exc
        if attempt.status != STATUS_COMPLETE or not attempt.created_session_id:
            raise FlowFailure(FlowError.UNEXPECTED, "Verification failed. Please try again.")
        return attempt.created_session_id


class PasswordResetChannel:
    """Reset code sent to the institutional address; the code is verified together with the new password."""

    kind = FlowKind.PASSWORD_RESET

    def __init__(self, client: IdentityClient, email_domain: str) -> None:
        self.client = client
        self.email_domain = email_domain

    def send(self, identifier: str, password: Optional[str]) -> SendResult:
        return self._start(institutional_email(identifier, self.email_domain))

    def resend(self, attempt_id: str, identifier: str, context: Dict[str, Any]) -> SendResult:
        # The provider re-sends by starting a fresh reset sign-in.
        return self._start(identifier)

    def verify(self, attempt_id: str, code: str, password: Optional[str], context: Dict[str, Any]) -> str:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise FlowFailure(FlowError.VALIDATION, "Password must be at least 8 characters")
        try:
            attempt = self.client.attempt_first_factor(
                attempt_id, STRATEGY_RESET_PASSWORD_EMAIL_CODE, code, password=password
            )
        except IdentityProviderError as exc:
            raise _verification_failure(exc) from exc
        if attempt.status == STATUS_NEEDS_SECOND_FACTOR:
            raise FlowFailure(
                FlowError.UNEXPECTED, "Two-factor authentication is required. Please contact support."
            )
        if attempt.status != STATUS_COMPLETE or not attempt.created_session_id:
            logger.error("Unexpected password reset result: %s", attempt.status)
            raise FlowFailure(FlowError.UNEXPECTED, "Unable to reset password. Please try again.")
        return attempt.created_session_id

    def _start(self, email: str) -> SendResult:
        try:
            attempt = self.client.create_sign_in(email, strategy=STRATEGY_RESET_PASSWORD_EMAIL_CODE)
        except IdentityProviderError as exc:
            if exc.has_code(ERROR_IDENTIFIER_NOT_FOUND):
                raise FlowFailure(
                    FlowError.IDENTIFIER_NOT_FOUND, "No account found with this University ID"
                ) from exc
            raise _unexpected(exc) from exc
        return SendResult(attempt_id=attempt.id, identifier=email)


def build_channel(kind: FlowKind):
    client = get_identity_client()
    domain = current_app.config["INSTITUTION_EMAIL_DOMAIN"]
    if kind is FlowKind.SIGN_UP:
        return SignUpChannel(client, domain)
    if kind is FlowKind.SIGN_IN:
        return SignInChannel(client)
    return PasswordResetChannel(client, domain)


__all__ = [
    "PasswordResetChannel",
    "SignInChannel",
    "SignUpChannel",
    "build_channel",
    "institutional_email",
]
