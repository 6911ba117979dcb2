"""Structured errors for formgate.

Custom exception hierarchy plus ``StructuredErrorResponse`` for turning
errors into machine-readable ``400`` bodies without leaking internals.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class FormGateError(Exception):
    """Base exception for all formgate errors."""


class KeyConflictError(FormGateError):
    """Raised when two flat keys require incompatible structures.

    ``existing_kind`` is the kind already present at the position and
    ``expected_kind`` the kind the current path needs there.
    """

    def __init__(self, key: str, path: str, existing_kind: str, expected_kind: str) -> None:
        self.key = key
        self.path = path
        self.existing_kind = existing_kind
        self.expected_kind = expected_kind
        super().__init__(
            f"Key conflict: '{key}' is already defined as a {existing_kind}, "
            f"but '{path}' expects a {expected_kind}"
        )


class MalformedBodyError(FormGateError):
    """Raised when a request body cannot be parsed for its target."""

    def __init__(self, target: str, detail: str = "") -> None:
        self.target = target
        self.detail = detail
        msg = f"Malformed {target} body"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class ValidationFailedError(FormGateError):
    """Carries the response a validator decided to send instead of a value.

    Raised from inside a FastAPI dependency; ``install_exception_handlers``
    returns ``response`` unchanged.
    """

    def __init__(self, response: Any) -> None:
        self.response = response
        super().__init__(f"Validation failed with status {getattr(response, 'status_code', '?')}")


class StructuredErrorResponse(BaseModel):
    """Structured error response.

    Returns ``{"error": str, "code": str, "request_id": str}``, no stack traces.
    """

    error: str
    code: str
    request_id: str

    @classmethod
    def from_exception(cls, exc: FormGateError, request_id: str) -> "StructuredErrorResponse":
        """Create from a formgate error, mapping to machine-readable codes."""
        if isinstance(exc, KeyConflictError):
            code = "KEY_CONFLICT"
        elif isinstance(exc, MalformedBodyError):
            code = "MALFORMED_BODY"
        else:
            code = "FORMGATE_ERROR"
        return cls(error=str(exc), code=code, request_id=request_id)
