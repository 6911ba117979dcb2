"""FastAPI validation dependency for nested form data.

``use_validator()`` builds a dependency that reads one request target,
decodes dot/bracket keys into nested data, validates it against a schema
and either returns the validated value or short-circuits with a ``400``
response whose issues have had restricted fields removed.

Usage::

    @app.post("/users")
    async def create_user(user: User = Depends(use_validator("form", User))):
        ...

The app must call ``install_exception_handlers()`` so that the response
carried by ``ValidationFailedError`` reaches the client.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from formgate.core.config import Settings
from formgate.core.errors import (
    FormGateError,
    KeyConflictError,
    StructuredErrorResponse,
    ValidationFailedError,
)
from formgate.parsing.form_decoder import decode
from formgate.security.issue_sanitizer import IssueSanitizer
from formgate.validator.request_targets import TARGET_READERS
from formgate.validator.schema import Schema, ValidationOutcome, ValidationResult, as_schema

_logger = logging.getLogger("formgate.validation")
_security_logger = logging.getLogger("formgate.security")

Hook = Callable[[ValidationOutcome, Request], Any]

_ENCODERS: dict[Any, Callable[[Any], Any]] = {UploadFile: lambda upload: upload.filename}


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _hook_response(hook_result: Any) -> Response | None:
    """Extract a response from a hook's return value, if it gave one."""
    if hook_result is None:
        return None
    if isinstance(hook_result, Response):
        return hook_result
    if isinstance(hook_result, Mapping):
        candidate = hook_result.get("response")
    else:
        candidate = getattr(hook_result, "response", None)
    return candidate if isinstance(candidate, Response) else None


def error_response(payload: Any, issues: Any) -> JSONResponse:
    """Build the ``400`` body ``{"data", "error", "success": false}``."""
    body = {"data": payload, "error": list(issues), "success": False}
    return JSONResponse(status_code=400, content=jsonable_encoder(body, custom_encoder=_ENCODERS))


def use_validator(
    target: str,
    schema: Schema | type[BaseModel],
    hook: Hook | None = None,
    sanitizer: IssueSanitizer | None = None,
) -> Callable[[Request], Awaitable[Any]]:
    """Create a FastAPI dependency validating *target* against *schema*.

    Args:
        target: One of ``json``, ``form``, ``query``, ``header``,
            ``cookie`` or ``param``.
        schema: A ``Schema`` implementation or a pydantic model class.
        hook: Optional ``(outcome, request)`` callable, sync or async.
            Returning a ``Response`` (or anything with a ``response``
            attribute/key holding one) sends that response instead.
        sanitizer: Issue sanitizer; defaults to one configured from
            ``Settings.RESTRICTED_DATA_FIELDS``.

    Raises:
        ValueError: If *target* is not a known validation target.
    """
    reader = TARGET_READERS.get(target)
    if reader is None:
        raise ValueError(f"Unknown validation target: {target!r}")

    bound_schema = as_schema(schema)
    issue_sanitizer = sanitizer or IssueSanitizer.from_settings(Settings())

    async def validate_request(request: Request) -> Any:
        raw = await reader(request)
        try:
            payload = decode(raw) if isinstance(raw, Mapping) else raw
        except KeyConflictError as exc:
            _security_logger.warning(
                "SECURITY event=key_conflict target=%s key=%r path=%r", target, exc.key, exc.path
            )
            raise

        result: ValidationResult = await _resolve(bound_schema.validate(payload))

        if hook is not None:
            outcome = ValidationOutcome(
                success=result.success,
                data=payload,
                target=target,
                error=None if result.success else result.issues,
            )
            response = _hook_response(await _resolve(hook(outcome, request)))
            if response is not None:
                raise ValidationFailedError(response)

        if result.issues is not None:
            issues = issue_sanitizer.sanitize(result.issues, bound_schema.vendor, target)
            _logger.debug(
                "Validation failed target=%s vendor=%s issues=%d",
                target,
                bound_schema.vendor,
                len(issues),
            )
            raise ValidationFailedError(error_response(payload, issues))

        return result.value

    return validate_request


def install_exception_handlers(app: FastAPI) -> None:
    """Register handlers translating formgate errors into responses."""

    @app.exception_handler(ValidationFailedError)
    async def _validation_failed(request: Request, exc: ValidationFailedError) -> Response:
        return exc.response

    @app.exception_handler(FormGateError)
    async def _formgate_error(request: Request, exc: FormGateError) -> JSONResponse:
        request_id = getattr(request.state, "request_id", "")
        body = StructuredErrorResponse.from_exception(exc, request_id)
        return JSONResponse(status_code=400, content=body.model_dump())
