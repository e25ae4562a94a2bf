"""Pagination continuation for HTML pages and JSON APIs.

Both resolvers are pure: they look at the current page or response plus the
request's :class:`~harvester.models.PaginationState` and return a
:class:`Continuation`.  A ``found`` continuation carries the next
:class:`~harvester.models.ExtractionRequest`, whose state has the current
target added to the visited sets.  Any target already visited ends the
chain.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urldefrag, urljoin

import httpx

from harvester.core.text import clean_text
from harvester.errors import PaginationStrategyFailure
from harvester.log import get_logger
from harvester.models import ExtractionRequest
from harvester.page import PageHandle

logger = get_logger(__name__)

FOUND = "found"
EXHAUSTED = "exhausted"


@dataclass
class Continuation:
    status: str
    reason: str
    url: str | None = None
    strategy: str | None = None
    next: ExtractionRequest | None = None

    @property
    def found(self) -> bool:
        return self.status == FOUND


def _exhausted(reason: str, strategy: str | None = None, url: str | None = None) -> Continuation:
    return Continuation(status=EXHAUSTED, reason=reason, strategy=strategy, url=url)


# ---------------------------------------------------------------------------
# HTML: ordered next-link strategies
# ---------------------------------------------------------------------------

_CONTAINER_SELECTORS = (
    ".pagination a.next",
    ".pagination .next a",
    ".pagination-next a",
    "a.pagination-next",
    ".pager .next a",
    ".pager a.next",
    "li.next a",
    "a.next",
    "a.next-page",
    ".next-page a",
    ".nav-links a.next",
)
_ACTIVE_PAGE_SELECTORS = (
    ".pagination .active",
    ".pagination .current",
    ".pager .active",
    ".pager .current",
    ".page-numbers.current",
    "[aria-current='page']",
)
_PAGE_LINK_SELECTOR = ".pagination a, .pager a, a.page-numbers, nav a"
_NEXT_TEXT = re.compile(r"\bnext\b", re.IGNORECASE)

HtmlStrategy = Callable[[PageHandle], "str | None"]


def _usable_href(href: str | None) -> str | None:
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith("#") or href.lower().startswith("javascript:"):
        return None
    return href


def _first_href(page: PageHandle, elements: list[Any]) -> str | None:
    for element in elements:
        href = _usable_href(page.attribute(element, "href"))
        if href:
            return href
    return None


def rel_next(page: PageHandle) -> str | None:
    return _first_href(page, page.query_all("a[rel~='next'], link[rel~='next']"))


def aria_label_next(page: PageHandle) -> str | None:
    return _first_href(page, page.query_all("a[aria-label*='next' i]"))


def pagination_container(page: PageHandle) -> str | None:
    for selector in _CONTAINER_SELECTORS:
        href = _first_href(page, page.query_all(selector))
        if href:
            return href
    return None


def link_text_next(page: PageHandle) -> str | None:
    links = [
        link
        for link in page.query_all("a[href]")
        if _NEXT_TEXT.search(clean_text(page.text_content(link)))
    ]
    return _first_href(page, links)


def numeric_successor(page: PageHandle) -> str | None:
    """Link labelled with the page number one greater than the active one."""
    current: int | None = None
    for selector in _ACTIVE_PAGE_SELECTORS:
        for element in page.query_all(selector):
            text = clean_text(page.text_content(element))
            if text.isdigit():
                current = int(text)
                break
        if current is not None:
            break
    if current is None:
        return None

    wanted = str(current + 1)
    links = [
        link
        for link in page.query_all(_PAGE_LINK_SELECTOR)
        if clean_text(page.text_content(link)) == wanted
    ]
    return _first_href(page, links)


HTML_STRATEGIES: tuple[tuple[str, HtmlStrategy], ...] = (
    ("rel_next", rel_next),
    ("aria_label_next", aria_label_next),
    ("pagination_container", pagination_container),
    ("link_text_next", link_text_next),
    ("numeric_successor", numeric_successor),
)


def find_next_link(
    page: PageHandle,
    strategies: tuple[tuple[str, HtmlStrategy], ...] = HTML_STRATEGIES,
) -> tuple[str | None, str | None]:
    """Run *strategies* in order; return ``(href, strategy_name)`` of the first hit.

    A strategy that raises is logged and skipped.
    """
    for name, strategy in strategies:
        try:
            href = strategy(page)
        except Exception as exc:
            failure = PaginationStrategyFailure(f"{name} failed: {exc}", strategy=name)
            logger.debug("[PAGINATION] %s", failure.message)
            continue
        if href:
            return href, name
    return None, None


def resolve_html_continuation(
    page: PageHandle,
    request: ExtractionRequest,
    strategies: tuple[tuple[str, HtmlStrategy], ...] = HTML_STRATEGIES,
) -> Continuation:
    """Decide whether an HTML page has a next page worth enqueuing."""
    if request.hints.pagination == "none":
        return _exhausted("Pagination disabled")
    if request.page_limit_reached:
        return _exhausted(f"Reached max pages ({request.max_pages})")

    href, strategy = find_next_link(page, strategies)
    if href is None:
        return _exhausted("No next-page link detected")

    base = page.url or request.url
    url, _ = urldefrag(urljoin(base, href))
    if url == request.url or url in request.state.visited_urls:
        logger.info("[PAGINATION] Next page %s already visited; stopping", url)
        return _exhausted("Next page already visited", strategy=strategy, url=url)

    next_request = request.continued(url=url, state=request.state.advance(url=request.url))
    return Continuation(
        status=FOUND,
        reason=f"Next page via {strategy}",
        url=url,
        strategy=strategy,
        next=next_request,
    )


# ---------------------------------------------------------------------------
# API: response-driven idioms
# ---------------------------------------------------------------------------

_NEXT_URL_KEYS = ("next", "nextPage", "next_page", "nextPageUrl", "next_page_url", "nextUrl", "next_url")
_NEXT_TOKEN_KEYS = ("nextPageToken", "next_page_token", "nextCursor", "next_cursor")
_NESTED_KEYS = ("pagination", "meta", "links", "paging")
_TOTAL_KEYS = ("totalResults", "totalCount", "total", "total_count", "count")

ASHA_OFFSET_PARAM = "firstResult"
ASHA_LIMIT_PARAM = "numberOfResults"
ASHA_DEFAULT_PAGE_SIZE = 10


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _sections(body: dict[str, Any]) -> list[dict[str, Any]]:
    sections = [body]
    for key in _NESTED_KEYS:
        if isinstance(body.get(key), dict):
            sections.append(body[key])
    return sections


def _sends_body(request: ExtractionRequest) -> bool:
    return request.method.upper() != "GET" and request.body is not None


def get_param(request: ExtractionRequest, name: str) -> Any:
    """Current value of a paging parameter (JSON body for POST, else query)."""
    if _sends_body(request):
        return request.body.get(name)
    return httpx.URL(request.url).params.get(name)


def with_param(request: ExtractionRequest, name: str, value: Any) -> ExtractionRequest:
    """Copy of *request* with the paging parameter *name* set to *value*."""
    if _sends_body(request):
        return request.continued(body={**request.body, name: value})
    url = httpx.URL(request.url).copy_set_param(name, str(value))
    return request.continued(url=str(url))


def _current_page(request: ExtractionRequest, pagination: dict[str, Any] | None = None) -> int:
    if pagination:
        for key in ("currentPage", "current_page", "page"):
            page = _as_int(pagination.get(key))
            if page is not None:
                return page
    page = _as_int(get_param(request, request.hints.page_param))
    return page if page is not None else request.state.page_number


def _guarded(
    request: ExtractionRequest,
    candidate: ExtractionRequest,
    key: str,
    current_key: str | None,
    strategy: str,
) -> Continuation:
    """Apply the loop guard to a computed API continuation."""
    if key == current_key or key in request.state.visited_offsets:
        logger.info("[PAGINATION] %s already visited; stopping", key)
        return _exhausted(f"{key} already visited", strategy=strategy)
    state = request.state.advance(key=current_key)
    return Continuation(
        status=FOUND,
        reason=f"Next page via {strategy}",
        url=candidate.url,
        strategy=strategy,
        next=candidate.continued(state=state),
    )


def _page_continuation(request: ExtractionRequest, current: int, target: int, strategy: str) -> Continuation:
    param = request.hints.page_param
    candidate = with_param(request, param, target)
    return _guarded(request, candidate, f"page:{target}", f"page:{current}", strategy)


def _explicit_next(request: ExtractionRequest, body: dict[str, Any]) -> Continuation | None:
    for section in _sections(body):
        for key in _NEXT_URL_KEYS:
            value = section.get(key)
            if isinstance(value, str) and value.strip() and _as_int(value) is None:
                value = value.strip()
                if "/" in value or "?" in value:
                    url, _ = urldefrag(urljoin(request.url, value))
                    if url == request.url or url in request.state.visited_urls:
                        return _exhausted("Next URL already visited", strategy="next_url", url=url)
                    return Continuation(
                        status=FOUND,
                        reason="Next page via next_url",
                        url=url,
                        strategy="next_url",
                        next=request.continued(url=url, state=request.state.advance(url=request.url)),
                    )
                return _token_continuation(request, value)
            if value is True or (_as_int(value) or 0) > 0:
                current = _current_page(request)
                target = _as_int(value)
                if target is None or target <= current:
                    target = current + 1
                return _page_continuation(request, current, target, "next_page_flag")

        for key in _NEXT_TOKEN_KEYS:
            value = section.get(key)
            if isinstance(value, (str, int)) and not isinstance(value, bool) and str(value).strip():
                return _token_continuation(request, str(value).strip())
    return None


def _token_continuation(request: ExtractionRequest, token: str) -> Continuation:
    param = request.hints.cursor_param
    current = get_param(request, param)
    current_key = f"cursor:{current}" if current else None
    candidate = with_param(request, param, token)
    return _guarded(request, candidate, f"cursor:{token}", current_key, "cursor")


def _total_pages(request: ExtractionRequest, body: dict[str, Any]) -> Continuation | None:
    pagination = body.get("pagination")
    if not isinstance(pagination, dict):
        return None
    total_pages = _as_int(pagination.get("totalPages"))
    if total_pages is None:
        return None
    current = _current_page(request, pagination)
    if current >= total_pages:
        return _exhausted(f"Last page reached ({current}/{total_pages})", strategy="total_pages")
    return _page_continuation(request, current, current + 1, "total_pages")


def _total_count(body: dict[str, Any]) -> int | None:
    for section in reversed(_sections(body)):
        for key in _TOTAL_KEYS:
            total = _as_int(section.get(key))
            if total is not None:
                return total
    return None


def _offset_limit(request: ExtractionRequest, body: dict[str, Any], record_count: int) -> Continuation:
    if request.hints.api_flavor == "asha":
        offset_param, limit_param, default_size = ASHA_OFFSET_PARAM, ASHA_LIMIT_PARAM, ASHA_DEFAULT_PAGE_SIZE
    else:
        offset_param, limit_param, default_size = (
            request.hints.offset_param,
            request.hints.limit_param,
            record_count,
        )

    offset = _as_int(get_param(request, offset_param)) or 0
    page_size = _as_int(get_param(request, limit_param)) or default_size
    if page_size <= 0:
        return _exhausted("Empty page", strategy="offset")

    total = _total_count(body)
    if total is None:
        # No total advertised: keep going while pages come back full.
        if record_count == 0 or record_count < page_size:
            return _exhausted("Short page without a total count", strategy="offset")
    elif offset + page_size >= total:
        return _exhausted(f"All {total} results fetched", strategy="offset")

    next_offset = offset + page_size
    logger.info("[PAGINATION] More results (%d/%s); next offset %d", next_offset, total, next_offset)
    candidate = with_param(request, offset_param, next_offset)
    return _guarded(request, candidate, f"offset:{next_offset}", f"offset:{offset}", "offset")


def resolve_api_continuation(
    request: ExtractionRequest,
    body: Any,
    record_count: int,
) -> Continuation:
    """Decide whether an API response has a next page worth requesting.

    Idioms, first applicable wins: explicit next URL / cursor / next-page
    flag on the response; ``pagination.totalPages``; offset/limit (the
    ``asha`` flavor or the ``offset`` hint); page parameter (the ``page``
    hint, stops on an empty page).
    """
    hints = request.hints
    if hints.pagination == "none":
        return _exhausted("Pagination disabled")
    if request.page_limit_reached:
        return _exhausted(f"Reached max pages ({request.max_pages})")

    try:
        if isinstance(body, dict):
            explicit = _explicit_next(request, body)
            if explicit is not None:
                return explicit
            by_pages = _total_pages(request, body)
            if by_pages is not None:
                return by_pages
            if hints.api_flavor == "asha" or hints.pagination == "offset":
                return _offset_limit(request, body, record_count)

        if hints.pagination == "page":
            if record_count == 0:
                return _exhausted("Empty page", strategy="page")
            current = _current_page(request)
            return _page_continuation(request, current, current + 1, "page")
    except Exception as exc:
        failure = PaginationStrategyFailure(f"API pagination failed: {exc}")
        logger.warning("[PAGINATION] %s", failure.message)
        return _exhausted(failure.message)

    return _exhausted("No pagination idiom matched")
