"""Per-client flow persistence in the signed Flask session."""

from __future__ import annotations

from typing import Optional

from flask import current_app, session

from gdg_portal.core.verification.channels import build_channel
from gdg_portal.core.verification.flow import FlowKind, ResendCooldown, VerificationFlow

_SESSION_KEY_PREFIX = "verification_flow:"


def _key(kind: FlowKind) -> str:
    return f"{_SESSION_KEY_PREFIX}{kind.value}"


def _cooldown() -> ResendCooldown:
    return ResendCooldown(seconds=current_app.config.get("RESEND_COOLDOWN_SECONDS", 60))


def _code_length() -> int:
    return current_app.config.get("VERIFICATION_CODE_LENGTH", 6)


def new_flow(kind: FlowKind) -> VerificationFlow:
    discard_flow(kind)
    return VerificationFlow(kind, build_channel(kind), cooldown=_cooldown(), code_length=_code_length())


def load_flow(kind: FlowKind) -> VerificationFlow:
    data: Optional[dict] = session.get(_key(kind))
    if not data:
        return VerificationFlow(kind, build_channel(kind), cooldown=_cooldown(), code_length=_code_length())
    return VerificationFlow.from_dict(
        data, build_channel(kind), cooldown=_cooldown(), code_length=_code_length()
    )


def save_flow(flow: VerificationFlow) -> None:
    if flow.is_complete:
        discard_flow(flow.kind)
        return
    session[_key(flow.kind)] = flow.to_dict()


def discard_flow(kind: FlowKind) -> None:
    session.pop(_key(kind), None)
