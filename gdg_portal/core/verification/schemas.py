"""Request schemas for the sign-up, sign-in and password-reset flows."""

from __future__ import annotations

import re
from typing import Optional

from flask import current_app, has_app_context
from pydantic import BaseModel, Field, field_validator

_EMAIL_LIKE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DEFAULT_UNIVERSITY_ID_LENGTH = 9
DEFAULT_INSTITUTION_DOMAIN = "qu.edu.sa"


def _university_id_length() -> int:
    if has_app_context():
        return current_app.config.get("UNIVERSITY_ID_LENGTH", DEFAULT_UNIVERSITY_ID_LENGTH)
    return DEFAULT_UNIVERSITY_ID_LENGTH


def _institution_domain() -> str:
    if has_app_context():
        return current_app.config.get("INSTITUTION_EMAIL_DOMAIN", DEFAULT_INSTITUTION_DOMAIN)
    return DEFAULT_INSTITUTION_DOMAIN


def validate_university_id(value: str) -> str:
    value = (value or "").strip()
    length = _university_id_length()
    if len(value) != length or not value.isdigit() or not value.isascii():
        raise ValueError(f"University ID must be exactly {length} digits")
    return value


class SignUpRequest(BaseModel):
    university_id: str
    password: str = Field(min_length=8)

    @field_validator("university_id")
    @classmethod
    def check_university_id(cls, v: str) -> str:
        return validate_university_id(v)


class SignInRequest(BaseModel):
    identifier: str
    password: str = Field(min_length=1)

    @field_validator("identifier")
    @classmethod
    def normalize_identifier(cls, v: str) -> str:
        """Accept a bare university ID or a full email address."""
        v = (v or "").strip().lower()
        if v.isdigit():
            return f"{validate_university_id(v)}@{_institution_domain()}"
        if not _EMAIL_LIKE.match(v):
            raise ValueError("Invalid email address")
        return v


class ForgotPasswordRequest(BaseModel):
    university_id: str

    @field_validator("university_id")
    @classmethod
    def check_university_id(cls, v: str) -> str:
        return validate_university_id(v)


class CodeRequest(BaseModel):
    code: str = ""
    password: Optional[str] = None
    # False only records the (sanitized) code without verifying it.
    submit: bool = True
