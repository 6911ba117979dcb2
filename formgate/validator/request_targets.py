"""Reading raw values out of a request for each validation target.

Every reader returns a flat mapping (or, for JSON, whatever the body
holds).  Bodies are only parsed when the ``Content-Type`` matches the
target; a mismatched body reads as ``{}``.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from starlette.requests import Request

from formgate.core.errors import MalformedBodyError

_JSON_CONTENT_TYPE = re.compile(r"^application/([a-z\-.]+\+)?json(;\s*[a-zA-Z0-9\-]+=([^;]+))*$")

_FORM_CONTENT_TYPE = re.compile(
    r"^(multipart/form-data|application/x-www-form-urlencoded)", re.IGNORECASE
)

# Form keys with this suffix always collect into a list
_LIST_SUFFIX = "[]"


def collect_values(items: Iterable[tuple[str, Any]], list_suffix: str | None = None) -> dict[str, Any]:
    """Fold repeated keys into lists; single occurrences stay scalar."""
    collected: dict[str, Any] = {}
    repeated: set[str] = set()
    for key, value in items:
        if list_suffix and key.endswith(list_suffix):
            collected.setdefault(key, []).append(value)
        elif key in repeated:
            collected[key].append(value)
        elif key in collected:
            collected[key] = [collected[key], value]
            repeated.add(key)
        else:
            collected[key] = value
    return collected


async def read_json(request: Request) -> Any:
    content_type = request.headers.get("content-type", "")
    if not _JSON_CONTENT_TYPE.match(content_type):
        return {}
    try:
        return await request.json()
    except ValueError as exc:
        raise MalformedBodyError("json", "request body is not valid JSON") from exc


async def read_form(request: Request) -> dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    if not _FORM_CONTENT_TYPE.match(content_type):
        return {}
    form = await request.form()
    return collect_values(form.multi_items(), list_suffix=_LIST_SUFFIX)


async def read_query(request: Request) -> dict[str, Any]:
    return collect_values(request.query_params.multi_items())


async def read_header(request: Request) -> dict[str, str]:
    # Header names are already lower-cased by Starlette
    return {key: ", ".join(request.headers.getlist(key)) for key in request.headers.keys()}


async def read_cookie(request: Request) -> dict[str, str]:
    return dict(request.cookies)


async def read_param(request: Request) -> dict[str, Any]:
    return dict(request.path_params)


TARGET_READERS: dict[str, Callable[[Request], Awaitable[Any]]] = {
    "json": read_json,
    "form": read_form,
    "query": read_query,
    "header": read_header,
    "cookie": read_cookie,
    "param": read_param,
}
