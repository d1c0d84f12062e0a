"""Backend member API payloads."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class Member(BaseModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    uni_id: Optional[int] = None
    gender: Optional[str] = None
    uni_level: Optional[int] = None
    uni_college: Optional[str] = None


class CreateMemberResponse(BaseModel):
    member: Member
    already_exists: bool = False
