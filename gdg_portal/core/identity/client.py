"""HTTP client for the hosted identity provider."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from flask import current_app
from pydantic import ValidationError

from gdg_portal.core.identity.constants import (
    ERROR_INVALID_RESPONSE,
    STRATEGY_EMAIL_CODE,
)
from gdg_portal.core.identity.errors import IdentityProviderError, ProviderErrorDetail
from gdg_portal.core.identity.schemas import (
    ActiveSession,
    IdentityUser,
    SessionTokenResponse,
    SignInAttempt,
    SignUpAttempt,
)

logger = logging.getLogger(__name__)


class IdentityClient:
    """Thin wrapper over the provider's REST surface.

    Every method either returns a parsed response model or raises
    ``IdentityProviderError``.
    """

    def __init__(
        self,
        base_url: str,
        secret_key: str,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        self.http.headers.update(
            {"Authorization": f"Bearer {secret_key}", "Content-Type": "application/json"}
        )

    # --- sign-up ---

    def create_sign_up(self, email_address: str, password: str) -> SignUpAttempt:
        data = self._request("POST", "/v1/sign_ups", {"email_address": email_address, "password": password})
        return self._parse(SignUpAttempt, data)

    def prepare_sign_up_verification(self, sign_up_id: str) -> SignUpAttempt:
        data = self._request(
            "POST", f"/v1/sign_ups/{sign_up_id}/prepare_verification", {"strategy": STRATEGY_EMAIL_CODE}
        )
        return self._parse(SignUpAttempt, data)

    def attempt_sign_up_verification(self, sign_up_id: str, code: str) -> SignUpAttempt:
        data = self._request(
            "POST",
            f"/v1/sign_ups/{sign_up_id}/attempt_verification",
            {"strategy": STRATEGY_EMAIL_CODE, "code": code},
        )
        return self._parse(SignUpAttempt, data)

    # --- sign-in ---

    def create_sign_in(
        self, identifier: str, password: Optional[str] = None, strategy: Optional[str] = None
    ) -> SignInAttempt:
        payload: Dict[str, Any] = {"identifier": identifier}
        if password is not None:
            payload["password"] = password
        if strategy is not None:
            payload["strategy"] = strategy
        return self._parse(SignInAttempt, self._request("POST", "/v1/sign_ins", payload))

    def prepare_first_factor(
        self, sign_in_id: str, strategy: str, email_address_id: Optional[str] = None
    ) -> SignInAttempt:
        payload: Dict[str, Any] = {"strategy": strategy}
        if email_address_id:
            payload["email_address_id"] = email_address_id
        data = self._request("POST", f"/v1/sign_ins/{sign_in_id}/prepare_first_factor", payload)
        return self._parse(SignInAttempt, data)

    def attempt_first_factor(
        self, sign_in_id: str, strategy: str, code: str, password: Optional[str] = None
    ) -> SignInAttempt:
        payload: Dict[str, Any] = {"strategy": strategy, "code": code}
        if password is not None:
            payload["password"] = password
        data = self._request("POST", f"/v1/sign_ins/{sign_in_id}/attempt_first_factor", payload)
        return self._parse(SignInAttempt, data)

    def prepare_second_factor(self, sign_in_id: str, email_address_id: str) -> SignInAttempt:
        data = self._request(
            "POST",
            f"/v1/sign_ins/{sign_in_id}/prepare_second_factor",
            {"strategy": STRATEGY_EMAIL_CODE, "email_address_id": email_address_id},
        )
        return self._parse(SignInAttempt, data)

    def attempt_second_factor(self, sign_in_id: str, code: str) -> SignInAttempt:
        data = self._request(
            "POST",
            f"/v1/sign_ins/{sign_in_id}/attempt_second_factor",
            {"strategy": STRATEGY_EMAIL_CODE, "code": code},
        )
        return self._parse(SignInAttempt, data)

    # --- sessions ---

    def set_active_session(self, session_id: str) -> ActiveSession:
        return self._parse(ActiveSession, self._request("POST", f"/v1/sessions/{session_id}/activate"))

    def get_session_token(self, session_id: str) -> str:
        data = self._request("POST", f"/v1/sessions/{session_id}/tokens")
        return self._parse(SessionTokenResponse, data).jwt

    def end_session(self, session_id: str) -> None:
        self._request("POST", f"/v1/sessions/{session_id}/end")

    # --- users ---

    def get_user(self, user_id: str) -> IdentityUser:
        return self._parse(IdentityUser, self._request("GET", f"/v1/users/{user_id}"))

    def update_user_metadata(self, user_id: str, public_metadata: Dict[str, Any]) -> IdentityUser:
        data = self._request(
            "PATCH", f"/v1/users/{user_id}/metadata", {"public_metadata": public_metadata}
        )
        return self._parse(IdentityUser, data)

    # --- helpers ---

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Identity provider request %s %s failed: %s", method, path, exc)
            raise IdentityProviderError.network(exc) from exc

        if resp.status_code >= 400:
            raise _error_from_response(resp)
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise IdentityProviderError.single(
                ERROR_INVALID_RESPONSE, "Identity provider returned a non-JSON body", resp.status_code
            ) from exc

    @staticmethod
    def _parse(model, data):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise IdentityProviderError.single(ERROR_INVALID_RESPONSE, str(exc)) from exc


def _error_from_response(resp: requests.Response) -> IdentityProviderError:
    details = []
    try:
        body = resp.json()
    except ValueError:
        body = {}
    for raw in (body.get("errors") if isinstance(body, dict) else None) or []:
        if isinstance(raw, dict):
            details.append(ProviderErrorDetail.model_validate(raw))
    if not details:
        details.append(ProviderErrorDetail(code=f"http_{resp.status_code}", message=resp.reason or ""))
    logger.info("Identity provider rejected request (%s): %s", resp.status_code, details[0].code)
    return IdentityProviderError(resp.status_code, details)


def get_identity_client() -> IdentityClient:
    """Return the client bound to the current app, creating it on first use."""
    client = current_app.extensions.get("identity_client")
    if client is None:
        config = current_app.config
        client = IdentityClient(
            config["IDENTITY_API_BASE_URL"],
            config["IDENTITY_SECRET_KEY"],
            timeout=config.get("IDENTITY_TIMEOUT_SECONDS", 10),
        )
        current_app.extensions["identity_client"] = client
    return client


__all__ = ["IdentityClient", "get_identity_client"]
