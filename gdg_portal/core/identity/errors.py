"""Identity provider error type."""

from __future__ import annotations

from typing import Iterable, List, Optional

from pydantic import BaseModel

from gdg_portal.core.identity.constants import ERROR_NETWORK


class ProviderErrorDetail(BaseModel):
    code: str = "unknown"
    message: str = ""
    long_message: Optional[str] = None


class IdentityProviderError(Exception):
    """Raised when the identity provider rejects a call or cannot be reached."""

    def __init__(self, status_code: Optional[int], errors: Iterable[ProviderErrorDetail]):
        self.status_code = status_code
        self.errors: List[ProviderErrorDetail] = list(errors)
        super().__init__(self.first_long_message or self.first_message or f"identity provider error ({status_code})")

    @classmethod
    def single(cls, code: str, message: str, status_code: Optional[int] = None) -> "IdentityProviderError":
        return cls(status_code, [ProviderErrorDetail(code=code, message=message)])

    @classmethod
    def network(cls, exc: Exception) -> "IdentityProviderError":
        return cls.single(ERROR_NETWORK, str(exc))

    @property
    def first_code(self) -> Optional[str]:
        return self.errors[0].code if self.errors else None

    @property
    def first_message(self) -> Optional[str]:
        return self.errors[0].message if self.errors else None

    @property
    def first_long_message(self) -> Optional[str]:
        return self.errors[0].long_message if self.errors else None

    def has_code(self, *codes: str) -> bool:
        # Provider codes may carry suffixes (e.g. form_code_incorrect_v2).
        return any(code in err.code for err in self.errors for code in codes)


__all__ = ["IdentityProviderError", "ProviderErrorDetail"]
