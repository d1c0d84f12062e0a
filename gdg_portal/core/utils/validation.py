"""Request validation helpers."""

from __future__ import annotations

from pydantic import ValidationError


def jsonable_errors(exc: ValidationError) -> list[dict]:
    errors = exc.errors()
    for err in errors:
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        # Raw input can echo passwords back to the client.
        err.pop("input", None)
    return errors
