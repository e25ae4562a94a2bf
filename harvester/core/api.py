"""Locate the record array inside an arbitrary JSON API response."""

from __future__ import annotations

import json
from typing import Any

from harvester.errors import MalformedApiResponse

_WELL_KNOWN_KEYS = ("results", "data", "items")


def parse_json_body(body: Any) -> Any:
    """Decode *body* if it is still text; already-decoded values pass through.

    Raises:
        MalformedApiResponse: If *body* is text that is not valid JSON.
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not isinstance(body, str):
        return body
    if not body.strip():
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise MalformedApiResponse(
            f"Response body is not valid JSON: {exc.msg}",
            position=exc.pos,
        ) from exc


def normalize_api_response(body: Any, flavor: str | None = None) -> list[Any]:
    """Return the list of records carried by *body*.

    Resolution order, first match wins: a top-level array; ``results`` for
    the ``asha`` flavor; ``results``; ``data``; ``items``; the first field
    holding a non-empty array; finally the whole object as a single record.
    Records are returned as-is, never reshaped.  ``None`` and scalar bodies
    yield ``[]``.
    """
    if isinstance(body, list):
        return body
    if not isinstance(body, dict):
        return []

    if flavor == "asha" and isinstance(body.get("results"), list):
        return body["results"]

    for key in _WELL_KNOWN_KEYS:
        if isinstance(body.get(key), list):
            return body[key]

    for value in body.values():
        if isinstance(value, list) and value:
            return value

    return [body]
