"""Typed views of identity provider responses."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from gdg_portal.core.identity.constants import STRATEGY_EMAIL_CODE


class Factor(BaseModel):
    strategy: str
    email_address_id: Optional[str] = None
    safe_identifier: Optional[str] = None


class SignUpAttempt(BaseModel):
    id: str
    status: str
    email_address: Optional[str] = None
    created_session_id: Optional[str] = None


class SignInAttempt(BaseModel):
    id: str
    status: str
    identifier: Optional[str] = None
    supported_first_factors: List[Factor] = Field(default_factory=list)
    supported_second_factors: List[Factor] = Field(default_factory=list)
    created_session_id: Optional[str] = None

    def email_code_second_factor(self) -> Optional[Factor]:
        return next(
            (factor for factor in self.supported_second_factors if factor.strategy == STRATEGY_EMAIL_CODE),
            None,
        )


class SessionTask(BaseModel):
    key: str


class ActiveSession(BaseModel):
    id: str
    user_id: str
    status: str = "active"
    current_task: Optional[SessionTask] = None


class IdentityUser(BaseModel):
    id: str
    primary_email_address: Optional[str] = None
    public_metadata: Dict[str, Any] = Field(default_factory=dict)


class SessionTokenResponse(BaseModel):
    jwt: str
