"""Schema contract used by ``use_validator``.

Any object with a ``vendor`` string and a ``validate(value)`` method
returning a ``ValidationResult`` (directly or as an awaitable) can be
plugged into a validator.  ``PydanticSchema`` binds a pydantic model.
"""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ValidationError


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ``Schema.validate``: a ``value`` or a list of ``issues``."""

    value: Any = None
    issues: Sequence[Any] | None = None

    @property
    def success(self) -> bool:
        return self.issues is None


@dataclass(frozen=True)
class ValidationOutcome:
    """What a validator hook sees.

    ``error`` holds the raw (unsanitized) issues when ``success`` is false.
    """

    success: bool
    data: Any
    target: str
    error: Sequence[Any] | None = None


@runtime_checkable
class Schema(Protocol):
    vendor: str

    def validate(self, value: Any) -> ValidationResult | Awaitable[ValidationResult]: ...


class PydanticSchema:
    """Schema adapter for a pydantic model class.

    Issues are ``ValidationError.errors()`` dicts without URLs or context
    objects, so they serialize cleanly into a JSON response.
    """

    vendor = "pydantic"

    def __init__(self, model: type[BaseModel]) -> None:
        self.model = model

    def validate(self, value: Any) -> ValidationResult:
        try:
            return ValidationResult(value=self.model.model_validate(value))
        except ValidationError as exc:
            return ValidationResult(issues=exc.errors(include_url=False, include_context=False))


def as_schema(schema: Schema | type[BaseModel]) -> Schema:
    """Wrap pydantic model classes; return anything else unchanged."""
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return PydanticSchema(schema)
    return schema
