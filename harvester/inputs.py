"""Turn actor-style input (``startUrls`` plus run-wide options) into requests.

Accepted shape::

    {
      "startUrls": ["https://…", {"url": "https://…", "apiType": "asha", …}],
      "dataSourceType": "auto" | "html" | "api",
      "maxPages": 0,
      "headers": {…}
    }

Per-URL keys: ``url``, ``label``, ``title``, ``mode`` / ``dataSourceType``,
``apiType``, ``method``, ``headers``, ``body``, ``tableSelector``,
``paginationType``, ``pageParamName``, ``offsetParamName``,
``limitParamName``, ``cursorParamName``, ``maxPages``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from harvester.config import settings
from harvester.flavors import apply_flavor
from harvester.models import ExtractionRequest, SourceHints

DEFAULT_START_URL = "https://en.wikipedia.org/wiki/List_of_municipalities_in_New_Mexico"

_PAGINATION_TYPES = {"auto", "page", "offset", "cursor", "none"}


def detect_mode(url: str, declared: str | None = None, api_type: str | None = None) -> str:
    """Resolve ``auto`` to ``html`` or ``api``."""
    if declared in ("html", "api"):
        return declared
    if api_type:
        return "api"
    path = url.lower().split("?", 1)[0]
    if path.endswith(".json") or "/api/" in path or path.rstrip("/").endswith("/api"):
        return "api"
    return "html"


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def request_from_entry(entry: str | dict[str, Any], options: dict[str, Any] | None = None) -> ExtractionRequest:
    """Build one :class:`ExtractionRequest` from a ``startUrls`` entry."""
    options = options or {}
    item: dict[str, Any] = {"url": entry} if isinstance(entry, str) else dict(entry)
    url = item["url"]

    api_type = item.get("apiType")
    pagination = item.get("paginationType") or "auto"
    hints = SourceHints(
        table_selector=item.get("tableSelector"),
        api_flavor=api_type,
        pagination=pagination if pagination in _PAGINATION_TYPES else "auto",
        page_param=item.get("pageParamName") or "page",
        offset_param=item.get("offsetParamName") or "offset",
        limit_param=item.get("limitParamName") or "limit",
        cursor_param=item.get("cursorParamName") or "cursor",
    )

    headers = _first(item.get("headers"), options.get("headers"))
    max_pages = _first(item.get("maxPages"), options.get("maxPages"), settings.max_pages)
    request = ExtractionRequest(
        url=url,
        mode=detect_mode(
            url,
            _first(item.get("mode"), item.get("dataSourceType"), options.get("dataSourceType")),
            api_type,
        ),
        hints=hints,
        method=(item.get("method") or "GET").upper(),
        headers=dict(headers or {}),
        body=item.get("body"),
        label=item.get("label"),
        title=item.get("title"),
        max_pages=int(max_pages or 0),
    )
    return apply_flavor(request, explicit_headers=headers is not None)


def load_input(data: dict[str, Any] | None) -> list[ExtractionRequest]:
    """Requests for every start URL; falls back to :data:`DEFAULT_START_URL`."""
    data = data or {}
    entries = data.get("startUrls") or [DEFAULT_START_URL]
    return [request_from_entry(entry, data) for entry in entries]


def load_input_file(path: Path | str) -> list[ExtractionRequest]:
    with Path(path).open(encoding="utf-8") as fh:
        return load_input(json.load(fh))
