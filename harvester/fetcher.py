"""HTTP fetch layer with optional Playwright fallback for JS-rendered pages.

This is the collaborator the core never sees directly: it turns a request
into either a :class:`~harvester.page.SoupPage` (HTML mode) or a
:class:`~harvester.models.FetchResponse` (API mode).  No retries happen
here; a failing fetch surfaces as an exception for the crawler to record.
"""

from __future__ import annotations

import re
from typing import Any, Protocol

import httpx

from harvester.config import settings
from harvester.log import get_logger
from harvester.models import FetchResponse
from harvester.page import SoupPage

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# SPA / JS-rendered page detection heuristics
# ---------------------------------------------------------------------------
_SPA_PATTERNS = [
    re.compile(r'<div[^>]+id=["\'](?:root|app|__next)["\']', re.IGNORECASE),
    re.compile(r"window\.__NEXT_DATA__", re.IGNORECASE),
    re.compile(r"ng-version=", re.IGNORECASE),
    re.compile(r"data-reactroot", re.IGNORECASE),
]


def _default_headers() -> dict[str, str]:
    return {"User-Agent": settings.user_agent}


def _is_spa(html: str) -> bool:
    """Return ``True`` if *html* looks like a JavaScript SPA that needs rendering.

    Pages that already contain a ``<table>`` are never treated as SPAs.
    """
    if re.search(r"<table[\s>]", html, re.IGNORECASE):
        return False
    for pattern in _SPA_PATTERNS:
        if pattern.search(html):
            return True
    # Very little visible text relative to total HTML size.
    no_scripts = re.sub(
        r"<(script|style)[^>]*>.*?</(script|style)>", "", html, flags=re.IGNORECASE | re.DOTALL
    )
    stripped = re.sub(r"<[^>]+>", "", no_scripts).strip()
    return len(html) > 2000 and len(stripped) < 200


def _fetch_with_playwright(url: str) -> str:
    """Render *url* with a headless Chromium browser and return its HTML.

    Playwright is imported lazily so environments without a browser install
    can still run every non-SPA path.
    """
    from playwright.sync_api import sync_playwright  # noqa: PLC0415

    with sync_playwright() as pw:
        browser = pw.chromium.launch(headless=True)
        try:
            page = browser.new_page(user_agent=settings.user_agent)
            page.goto(
                url,
                timeout=int(settings.request_timeout * 1000),
                wait_until="networkidle",
            )
            page.wait_for_selector("body")
            html = page.content()
        finally:
            browser.close()
    return html


def fetch_page(url: str) -> SoupPage:
    """Fetch *url* and return a parsed :class:`SoupPage`.

    Raises:
        httpx.HTTPStatusError: If the server returns a 4xx/5xx status code.
    """
    with httpx.Client(
        headers=_default_headers(),
        timeout=settings.request_timeout,
        follow_redirects=True,
    ) as client:
        response = client.get(url)
        response.raise_for_status()
        html = response.text
        final_url = str(response.url)

    if settings.playwright_fallback and _is_spa(html):
        logger.info("[FETCH] %s looks JS-rendered; using Playwright", url)
        html = _fetch_with_playwright(final_url)

    return SoupPage(html, url=final_url)


# ---------------------------------------------------------------------------
# API fetch provider
# ---------------------------------------------------------------------------

class FetchProvider(Protocol):
    def send(
        self,
        url: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: Any = None,
    ) -> FetchResponse: ...


class HttpxFetcher:
    """:class:`FetchProvider` backed by a shared ``httpx.Client``.

    Status codes are returned, not raised: the core decides what a 4xx/5xx
    means for the unit.
    """

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(
            headers={**_default_headers(), "Accept": "application/json"},
            timeout=settings.request_timeout,
            follow_redirects=True,
        )

    def send(
        self,
        url: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: Any = None,
    ) -> FetchResponse:
        kwargs: dict[str, Any] = {"headers": headers or {}}
        if body is not None:
            kwargs["json"] = body
        response = self._client.request(method.upper(), url, **kwargs)
        try:
            payload: Any = response.json()
        except ValueError:
            payload = response.text
        return FetchResponse(
            status_code=response.status_code,
            body=payload,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpxFetcher:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
