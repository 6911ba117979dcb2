"""Validation-issue sanitization.

Strips sensitive fields (cookies by default) from validator issues before
they are returned to the client.  Issue shapes differ per validation
library, so redaction dispatches on the schema's vendor identifier:

- ``arktype``: the rejected input lives in a flat ``data`` mapping on the
  issue.  Issues are cloned (type preserved) with a redacted copy of
  ``data``; the originals are not modified.
- ``valibot``: the rejected input lives in the ``input`` mapping of each
  entry in ``issue.path``.  Fields are deleted from those mappings in
  place, on the caller's issue objects.
- ``pydantic``: ``ValidationError.errors()`` dicts carry the rejected value
  in ``input``.  Issues are cloned like ``arktype``; an error located at a
  restricted field loses its ``input`` entirely.

Unknown vendors and targets without restricted fields pass through
untouched.  A vendor whose issues embed sensitive data somewhere else is
not redacted until it has an entry in ``_VENDOR_SANITIZERS``.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import types
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from typing import Any

from pydantic import BaseModel

from formgate.core.config import DEFAULT_RESTRICTED_DATA_FIELDS, Settings

_security_logger = logging.getLogger("formgate.security")


def _get_field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _public_fields(issue: Any) -> dict[str, Any]:
    fields = {}
    for attr in dir(issue):
        if attr.startswith("_"):
            continue
        value = getattr(issue, attr, None)
        if not callable(value):
            fields[attr] = value
    return fields


def _replace_field(issue: Any, name: str, value: Any) -> Any:
    """Return a shallow copy of *issue* with *name* set to *value*.

    The copy keeps the issue's own type so downstream consumers that
    branch on it still see the same class.  Issues whose type cannot be
    copied with a new *name* (read-only properties, slots, immutable
    mappings without a dict constructor) become a ``SimpleNamespace``
    or ``dict`` of their public fields instead.
    """
    if isinstance(issue, MutableMapping):
        clone = copy.copy(issue)
        clone[name] = value
        return clone
    if isinstance(issue, Mapping):
        try:
            return type(issue)({**issue, name: value})
        except TypeError:
            return {**issue, name: value}
    if isinstance(issue, BaseModel):
        return issue.model_copy(update={name: value})
    try:
        if isinstance(issue, tuple) and hasattr(issue, "_replace"):
            return issue._replace(**{name: value})
        if dataclasses.is_dataclass(issue) and not isinstance(issue, type):
            return dataclasses.replace(issue, **{name: value})
        clone = copy.copy(issue)
        setattr(clone, name, value)
        return clone
    except (AttributeError, TypeError, ValueError):
        return types.SimpleNamespace(**{**_public_fields(issue), name: value})


def _clone_without(issue: Any, payload_field: str, restricted_fields: Sequence[str]) -> Any:
    payload = _get_field(issue, payload_field)
    if not isinstance(payload, Mapping):
        return issue
    redacted = {key: value for key, value in payload.items() if key not in restricted_fields}
    return _replace_field(issue, payload_field, redacted)


def _sanitize_data_payload_issues(issues: Sequence[Any], restricted_fields: Sequence[str]) -> list[Any]:
    return [_clone_without(issue, "data", restricted_fields) for issue in issues]


def _sanitize_path_input_issues(issues: Sequence[Any], restricted_fields: Sequence[str]) -> list[Any]:
    # Mutates path-entry inputs in place.
    for issue in issues:
        path = _get_field(issue, "path")
        if not isinstance(path, (list, tuple)):
            continue
        for entry in path:
            entry_input = _get_field(entry, "input")
            if isinstance(entry_input, MutableMapping):
                for field in restricted_fields:
                    entry_input.pop(field, None)
    return list(issues)


def _redact_error_input(issue: Any, restricted_fields: Sequence[str]) -> Any:
    loc = _get_field(issue, "loc")
    if isinstance(issue, Mapping) and "input" in issue and isinstance(loc, (list, tuple)) and loc:
        if loc[-1] in restricted_fields:
            # input is the restricted value itself
            return {key: value for key, value in issue.items() if key != "input"}
    return _clone_without(issue, "input", restricted_fields)


def _sanitize_error_input_issues(issues: Sequence[Any], restricted_fields: Sequence[str]) -> list[Any]:
    return [_redact_error_input(issue, restricted_fields) for issue in issues]


_VENDOR_SANITIZERS: dict[str, Callable[[Sequence[Any], Sequence[str]], list[Any]]] = {
    "arktype": _sanitize_data_payload_issues,
    "valibot": _sanitize_path_input_issues,
    "pydantic": _sanitize_error_input_issues,
}


def sanitize_issues(
    issues: Sequence[Any],
    vendor: str,
    target: str,
    restricted_fields: Mapping[str, Sequence[str]] | None = None,
) -> Sequence[Any]:
    """Remove restricted fields from *issues* for the given *target*.

    Returns *issues* itself when *target* has no restricted fields or
    *vendor* is not recognised.  Never raises; the result always has the
    same length and order as the input.

    Example::

        issues = [{"message": "Invalid header", "data": {"cookie": "secret"}}]
        sanitize_issues(issues, "arktype", "header")
        # → [{"message": "Invalid header", "data": {}}]
    """
    fields_by_target = DEFAULT_RESTRICTED_DATA_FIELDS if restricted_fields is None else restricted_fields
    if target not in fields_by_target:
        return issues

    vendor_sanitizer = _VENDOR_SANITIZERS.get(vendor)
    if vendor_sanitizer is None:
        return issues

    fields = list(fields_by_target[target])
    _security_logger.debug(
        "SECURITY event=issue_redaction vendor=%s target=%s fields=%s issues=%d",
        vendor,
        target,
        fields,
        len(issues),
    )
    return vendor_sanitizer(issues, fields)


class IssueSanitizer:
    """Binds a restricted field set to ``sanitize_issues``.

    Args:
        restricted_fields: Mapping of validation target to field names to
            strip.  Defaults to ``{"header": ["cookie"]}``.
    """

    def __init__(self, restricted_fields: Mapping[str, Sequence[str]] | None = None) -> None:
        if restricted_fields is None:
            restricted_fields = DEFAULT_RESTRICTED_DATA_FIELDS
        self.restricted_fields = restricted_fields

    @classmethod
    def from_settings(cls, settings: Settings) -> IssueSanitizer:
        return cls(settings.RESTRICTED_DATA_FIELDS)

    def sanitize(self, issues: Sequence[Any], vendor: str, target: str) -> Sequence[Any]:
        return sanitize_issues(issues, vendor, target, self.restricted_fields)
