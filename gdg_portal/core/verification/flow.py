"""Multi-step code verification state machine.

One machine drives sign-up email verification, the sign-in second factor and
the password-reset flow. The kind only selects the channel (which identity
provider calls run) and the copy; the graph is the same for all three::

    collecting-identifier -> sending-code -> awaiting-code -> verifying-code -> complete
                  ^               |               |  ^             |
                  +----failure----+               |  +---failure---+
                  +--------------back-------------+

A resend cooldown runs alongside the main state and only gates ``resend``.
"""

from __future__ import annotations

import logging
import math
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
RESEND_COOLDOWN_SECONDS = 60

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again or contact support."
SESSION_MISSING_MESSAGE = "Your verification session was not found. Please start again."
INVALID_CODE_LENGTH_MESSAGE = "Please enter a valid 6-digit verification code"

_NON_DIGITS = re.compile(r"[^0-9]")


def sanitize_code(raw: Optional[str], length: int = CODE_LENGTH) -> str:
    """Keep digits only, capped at ``length`` characters."""
    return _NON_DIGITS.sub("", raw or "")[:length]


class FlowKind(str, Enum):
    SIGN_UP = "sign-up"
    SIGN_IN = "sign-in"
    PASSWORD_RESET = "password-reset"


class FlowState(str, Enum):
    COLLECTING_IDENTIFIER = "collecting-identifier"
    SENDING_CODE = "sending-code"
    AWAITING_CODE = "awaiting-code"
    VERIFYING_CODE = "verifying-code"
    COMPLETE = "complete"


class FlowError(str, Enum):
    INVALID_CODE = "invalid-code"
    SESSION_MISSING = "session-missing"
    IDENTIFIER_NOT_FOUND = "identifier-not-found"
    IDENTIFIER_TAKEN = "identifier-taken"
    INVALID_CREDENTIALS = "invalid-credentials"
    VALIDATION = "validation"
    UNEXPECTED = "unexpected"


class FlowFailure(Exception):
    """Raised by a channel to put the flow into a specific error."""

    def __init__(self, error: FlowError, message: str = GENERIC_ERROR_MESSAGE):
        super().__init__(message)
        self.error = error
        self.message = message


@dataclass
class SendResult:
    attempt_id: str
    identifier: str
    # Set when the provider finished without asking for a code.
    session_id: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)


class CodeChannel(Protocol):
    kind: FlowKind

    def send(self, identifier: str, password: Optional[str]) -> SendResult: ...

    def resend(self, attempt_id: str, identifier: str, context: Dict[str, Any]) -> SendResult: ...

    def verify(
        self, attempt_id: str, code: str, password: Optional[str], context: Dict[str, Any]
    ) -> str: ...


class ResendCooldown:
    """Wall-clock countdown gating the resend action."""

    def __init__(
        self,
        seconds: int = RESEND_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.time,
        until: float = 0.0,
    ) -> None:
        self.seconds = seconds
        self.clock = clock
        self.until = until

    def start(self) -> None:
        self.until = self.clock() + self.seconds

    def reset(self) -> None:
        self.until = 0.0

    def remaining(self) -> int:
        return max(0, math.ceil(self.until - self.clock()))

    @property
    def ready(self) -> bool:
        return self.remaining() == 0


class VerificationFlow:
    def __init__(
        self,
        kind: FlowKind,
        channel: CodeChannel,
        *,
        cooldown: Optional[ResendCooldown] = None,
        code_length: int = CODE_LENGTH,
    ) -> None:
        self.kind = kind
        self.channel = channel
        self.cooldown = cooldown or ResendCooldown()
        self.code_length = code_length

        self.state = FlowState.COLLECTING_IDENTIFIER
        self.identifier: Optional[str] = None
        self.attempt_id: Optional[str] = None
        self.context: Dict[str, Any] = {}
        self.code = ""
        self.code_error = False
        self.error: Optional[FlowError] = None
        self.message: Optional[str] = None
        self.session_id: Optional[str] = None

        self.busy = False
        self.resending = False

    # --- derived ---

    @property
    def can_submit(self) -> bool:
        return self.state is FlowState.AWAITING_CODE and not self.busy and len(self.code) == self.code_length

    @property
    def can_resend(self) -> bool:
        return self.state is FlowState.AWAITING_CODE and not self.resending and self.cooldown.ready

    @property
    def is_complete(self) -> bool:
        return self.state is FlowState.COMPLETE

    # --- transitions ---

    def submit_identifier(self, identifier: str, password: Optional[str] = None) -> FlowState:
        if self.busy or self.state is not FlowState.COLLECTING_IDENTIFIER:
            return self.state
        self._clear_error()
        self.busy = True
        self.state = FlowState.SENDING_CODE
        try:
            result = self.channel.send(identifier, password)
        except FlowFailure as exc:
            self.state = FlowState.COLLECTING_IDENTIFIER
            self._fail(exc.error, exc.message)
        except Exception:
            logger.exception("%s flow: sending code failed", self.kind.value)
            self.state = FlowState.COLLECTING_IDENTIFIER
            self._fail(FlowError.UNEXPECTED, GENERIC_ERROR_MESSAGE)
        else:
            self._adopt(result)
            if result.session_id:
                self.session_id = result.session_id
                self.state = FlowState.COMPLETE
            else:
                self.state = FlowState.AWAITING_CODE
                self.cooldown.start()
        finally:
            self.busy = False
        return self.state

    def enter_code(self, raw: Optional[str]) -> str:
        self.code = sanitize_code(raw, self.code_length)
        self.code_error = False
        return self.code

    def submit_code(self, code: Optional[str] = None, password: Optional[str] = None) -> FlowState:
        if self.busy:
            return self.state
        if self.state is not FlowState.AWAITING_CODE:
            if self.attempt_id is None and self.state is not FlowState.COMPLETE:
                self._fail(FlowError.SESSION_MISSING, SESSION_MISSING_MESSAGE)
            return self.state
        if code is not None:
            self.enter_code(code)
        self._clear_error()
        if len(self.code) != self.code_length:
            self._fail(FlowError.VALIDATION, INVALID_CODE_LENGTH_MESSAGE)
            return self.state
        if self.attempt_id is None:
            self._restart(FlowError.SESSION_MISSING, SESSION_MISSING_MESSAGE)
            return self.state

        self.busy = True
        self.state = FlowState.VERIFYING_CODE
        try:
            session_id = self.channel.verify(self.attempt_id, self.code, password, self.context)
        except FlowFailure as exc:
            if exc.error is FlowError.SESSION_MISSING:
                self._restart(exc.error, exc.message)
            else:
                self.state = FlowState.AWAITING_CODE
                if exc.error is FlowError.INVALID_CODE:
                    self.code = ""
                    self.code_error = True
                self._fail(exc.error, exc.message)
        except Exception:
            logger.exception("%s flow: verifying code failed", self.kind.value)
            self.state = FlowState.AWAITING_CODE
            self._fail(FlowError.UNEXPECTED, GENERIC_ERROR_MESSAGE)
        else:
            self.session_id = session_id
            self.code = ""
            self.state = FlowState.COMPLETE
        finally:
            self.busy = False
        return self.state

    def resend(self) -> bool:
        """Re-issue the code; a no-op while cooling down or already resending."""
        if not self.can_resend:
            return False
        if self.attempt_id is None or self.identifier is None:
            self._restart(FlowError.SESSION_MISSING, SESSION_MISSING_MESSAGE)
            return False
        self.resending = True
        self._clear_error()
        try:
            result = self.channel.resend(self.attempt_id, self.identifier, self.context)
        except FlowFailure as exc:
            self._fail(exc.error, exc.message)
            return False
        except Exception:
            logger.exception("%s flow: resending code failed", self.kind.value)
            self._fail(FlowError.UNEXPECTED, GENERIC_ERROR_MESSAGE)
            return False
        else:
            self._adopt(result)
            self.cooldown.start()
            return True
        finally:
            self.resending = False

    def back(self) -> FlowState:
        if self.busy or self.state is not FlowState.AWAITING_CODE:
            return self.state
        self._restart(None, None)
        return self.state

    # --- persistence ---

    def snapshot(self) -> Dict[str, Any]:
        """Client-facing view of the flow."""
        return {
            "kind": self.kind.value,
            "state": self.state.value,
            "identifier": self.identifier,
            "code": self.code,
            "code_error": self.code_error,
            "error": self.error.value if self.error else None,
            "message": self.message,
            "can_submit": self.can_submit,
            "can_resend": self.can_resend,
            "cooldown_remaining": self.cooldown.remaining() if self.state is FlowState.AWAITING_CODE else 0,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "state": self.state.value,
            "identifier": self.identifier,
            "attempt_id": self.attempt_id,
            "context": dict(self.context),
            "code": self.code,
            "code_error": self.code_error,
            "error": self.error.value if self.error else None,
            "message": self.message,
            "cooldown_until": self.cooldown.until,
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        channel: CodeChannel,
        *,
        cooldown: Optional[ResendCooldown] = None,
        code_length: int = CODE_LENGTH,
    ) -> "VerificationFlow":
        flow = cls(FlowKind(data["kind"]), channel, cooldown=cooldown, code_length=code_length)
        state = FlowState(data.get("state", FlowState.COLLECTING_IDENTIFIER.value))
        # In-flight states never survive a request; resume from the stable state before them.
        if state is FlowState.SENDING_CODE:
            state = FlowState.COLLECTING_IDENTIFIER
        elif state is FlowState.VERIFYING_CODE:
            state = FlowState.AWAITING_CODE
        flow.state = state
        flow.identifier = data.get("identifier")
        flow.attempt_id = data.get("attempt_id")
        flow.context = dict(data.get("context") or {})
        flow.code = sanitize_code(data.get("code"), code_length)
        flow.code_error = bool(data.get("code_error"))
        flow.error = FlowError(data["error"]) if data.get("error") else None
        flow.message = data.get("message")
        flow.cooldown.until = float(data.get("cooldown_until") or 0.0)
        return flow

    # --- internals ---

    def _adopt(self, result: SendResult) -> None:
        self.attempt_id = result.attempt_id
        self.identifier = result.identifier
        self.context = dict(result.context)

    def _restart(self, error: Optional[FlowError], message: Optional[str]) -> None:
        self.state = FlowState.COLLECTING_IDENTIFIER
        self.attempt_id = None
        self.context = {}
        self.code = ""
        self.code_error = False
        self.cooldown.reset()
        self.error = error
        self.message = message

    def _clear_error(self) -> None:
        self.error = None
        self.message = None

    def _fail(self, error: FlowError, message: Optional[str]) -> None:
        self.error = error
        self.message = message or GENERIC_ERROR_MESSAGE


__all__ = [
    "CODE_LENGTH",
    "CodeChannel",
    "FlowError",
    "FlowFailure",
    "FlowKind",
    "FlowState",
    "GENERIC_ERROR_MESSAGE",
    "RESEND_COOLDOWN_SECONDS",
    "ResendCooldown",
    "SendResult",
    "VerificationFlow",
    "sanitize_code",
]
