"""Onboarding form schema."""

from __future__ import annotations

import re
from typing import Any, Dict, Literal, Optional

from flask import current_app, has_app_context
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from gdg_portal.core.onboarding.constants import COLLEGE_OTHER, QU_COLLEGES

_ARABIC_NAME = re.compile(r"^[\u0600-\u06FF\s]+$")
_SAUDI_MOBILE = re.compile(r"^05[0-9]{8}$")
DEFAULT_INSTITUTION_DOMAIN = "qu.edu.sa"


def _institution_domain() -> str:
    if has_app_context():
        return current_app.config.get("INSTITUTION_EMAIL_DOMAIN", DEFAULT_INSTITUTION_DOMAIN)
    return DEFAULT_INSTITUTION_DOMAIN


class OnboardingRequest(BaseModel):
    """Profile fields written once to the identity provider's public metadata."""

    model_config = ConfigDict(populate_by_name=True)

    full_arabic_name: str = Field(alias="fullArabicName")
    saudi_phone: str = Field(alias="saudiPhone")
    gender: Literal["Male", "Female"]
    uni_level: int = Field(alias="uniLevel", ge=1, le=10)
    uni_college_selection: str = Field(alias="uniCollegeSelection")
    uni_college_other: Optional[str] = Field(default=None, alias="uniCollegeOther")
    personal_email: EmailStr = Field(alias="personalEmail")

    @field_validator("full_arabic_name")
    @classmethod
    def validate_arabic_name(cls, v: str) -> str:
        v = " ".join((v or "").split())
        if not v:
            raise ValueError("Full Arabic name is required")
        if not _ARABIC_NAME.match(v):
            raise ValueError("Name must be in Arabic characters only")
        return v

    @field_validator("saudi_phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        v = (v or "").strip()
        if not _SAUDI_MOBILE.match(v):
            raise ValueError("Phone number must start with 05 followed by 8 digits")
        return v

    @field_validator("uni_college_selection")
    @classmethod
    def validate_college(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Please select your college")
        if v != COLLEGE_OTHER and v not in QU_COLLEGES:
            raise ValueError("Unknown college")
        return v

    @field_validator("personal_email")
    @classmethod
    def reject_institutional_email(cls, v: str) -> str:
        domain = _institution_domain().lower()
        lowered = v.lower()
        if lowered.endswith(f"@{domain}") or lowered.endswith(f".{domain}"):
            raise ValueError(f"Personal email cannot be a @{domain} address")
        return v

    @model_validator(mode="after")
    def require_other_college(self) -> "OnboardingRequest":
        if self.uni_college_selection == COLLEGE_OTHER:
            if not (self.uni_college_other or "").strip():
                raise ValueError("Please enter your college name")
        return self

    @property
    def uni_college(self) -> str:
        if self.uni_college_selection == COLLEGE_OTHER:
            return (self.uni_college_other or "").strip()
        return self.uni_college_selection

    def to_metadata(self, university_id: str) -> Dict[str, Any]:
        """Public metadata payload; completion is flagged in the same write."""
        return {
            "uni_id": university_id,
            "fullArabicName": self.full_arabic_name,
            "saudiPhone": self.saudi_phone,
            "gender": self.gender,
            "uniLevel": self.uni_level,
            "uniCollege": self.uni_college,
            "personalEmail": str(self.personal_email),
            "onboardingComplete": True,
        }
