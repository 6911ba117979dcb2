"""Nested form validation for FastAPI.

Decodes dot/bracket form keys, validates the nested result against a
pluggable schema and redacts sensitive fields from validation issues.
"""

from formgate.parsing.form_decoder import decode
from formgate.security.issue_sanitizer import IssueSanitizer, sanitize_issues
from formgate.validator.schema import (
    PydanticSchema,
    Schema,
    ValidationOutcome,
    ValidationResult,
)
from formgate.validator.validator import install_exception_handlers, use_validator

__all__ = [
    "IssueSanitizer",
    "PydanticSchema",
    "Schema",
    "ValidationOutcome",
    "ValidationResult",
    "decode",
    "install_exception_handlers",
    "sanitize_issues",
    "use_validator",
]
