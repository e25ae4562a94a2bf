"""Per-unit entry points.

``extract_from_page`` (HTML) and ``extract_from_response`` (API) each turn
one extraction unit into an :class:`~harvester.models.ExtractionResult`:
a :class:`~harvester.models.ResultBatch` for the sink plus an optional next
request.  Neither raises; every failure becomes an error-annotated batch.

    HTML:  discovery → headers → rows → batch → next-link continuation
    API:   status check → JSON decode → normalise → batch → API continuation
"""

from __future__ import annotations

from typing import Any

from harvester.config import settings
from harvester.core.api import normalize_api_response, parse_json_body
from harvester.core.discovery import find_target_table, score_tables
from harvester.core.headers import resolve_headers
from harvester.core.pagination import resolve_api_continuation, resolve_html_continuation
from harvester.core.rows import column_info, extract_rows
from harvester.errors import (
    ExtractionError,
    MalformedApiResponse,
    NoRowsExtracted,
    NoTableFound,
    UpstreamHttpError,
)
from harvester.log import get_logger
from harvester.models import ExtractionRequest, ExtractionResult, FetchResponse, ResultBatch
from harvester.page import PageHandle

logger = get_logger(__name__)


def _new_batch(request: ExtractionRequest, **fields: Any) -> ResultBatch:
    default_title = "API Data Extraction" if request.mode == "api" else "Structured Data Extraction"
    return ResultBatch(
        url=request.url,
        source_type=request.mode,
        title=request.title or default_title,
        label=request.label,
        page_number=request.state.page_number,
        **fields,
    )


def annotate(batch: ResultBatch, error: ExtractionError) -> ResultBatch:
    """Record *error* on *batch* in place and return it."""
    batch.error = error.message
    batch.error_kind = error.kind
    batch.error_details = dict(error.details)
    return batch


def body_preview(body: Any, limit: int | None = None) -> str:
    """Truncated text of a response body for diagnostics."""
    limit = settings.error_body_preview if limit is None else limit
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    text = body if isinstance(body, str) else repr(body)
    return text[:limit]


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

def _extract_table(page: PageHandle, request: ExtractionRequest) -> ResultBatch:
    selection = find_target_table(page, request.hints.table_selector)
    if not selection.found:
        raise NoTableFound(
            f"No suitable table found on page: {selection.reason}",
            table_count=len(page.query_all("table")),
        )
    logger.info("[DISCOVERY] %s (%s)", selection.reason, selection.selector)

    resolution = resolve_headers(page, selection.element)
    if resolution.headers:
        logger.info("[HEADERS] %s: %s", resolution.source, ", ".join(resolution.headers))
    else:
        logger.warning("[HEADERS] Could not extract headers from the table")

    rows = extract_rows(page, selection.element, resolution.headers, resolution.consumed_first_row)
    batch = _new_batch(request, records=rows, column_info=column_info(resolution.headers, rows))
    if not rows:
        raise NoRowsExtracted(
            "Failed to extract data from the selected table",
            table_selector=selection.selector,
        )
    return batch


def extract_from_page(page: PageHandle, request: ExtractionRequest) -> ExtractionResult:
    """Extract the target table of *page* and look for a next page."""
    logger.info("[HTML] Processing %s (page %d)", request.url, request.state.page_number)
    try:
        batch = _extract_table(page, request)
    except ExtractionError as exc:
        logger.error("[HTML] %s", exc.message)
        return ExtractionResult(batch=annotate(_new_batch(request), exc))
    except Exception as exc:
        logger.exception("[HTML] Unexpected extraction failure for %s", request.url)
        error = ExtractionError(f"Unexpected extraction failure: {exc}")
        return ExtractionResult(batch=annotate(_new_batch(request), error))

    logger.info("[HTML] Extracted %d row(s)", batch.row_count)
    try:
        continuation = resolve_html_continuation(page, request)
    except Exception as exc:
        logger.warning("[PAGINATION] Continuation check failed: %s", exc)
        return ExtractionResult(batch=batch)
    if continuation.found:
        logger.info("[PAGINATION] Pagination detected: %s", continuation.url)
    else:
        logger.info("[PAGINATION] %s", continuation.reason)
    return ExtractionResult(batch=batch, next=continuation.next)


def analyze_page(page: PageHandle) -> dict[str, Any]:
    """Summary of every table on *page*, as logged before discovery."""
    candidates = score_tables(page)
    return {
        "tableCount": len(candidates),
        "tables": [candidate.summary() for candidate in candidates],
    }


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

def extract_from_response(response: FetchResponse, request: ExtractionRequest) -> ExtractionResult:
    """Normalise one API response and work out the next request."""
    flavor = request.hints.api_flavor
    logger.info("[API] Processing %s (page %d, flavor=%s)", request.url, request.state.page_number, flavor)
    try:
        if response.status_code >= 400:
            raise UpstreamHttpError(response.status_code, body_preview(response.body))

        body = parse_json_body(response.body)
        if body is None or not isinstance(body, (dict, list)):
            raise MalformedApiResponse(
                "Response body holds no JSON object or array",
                body_preview=body_preview(response.body),
            )
        records = normalize_api_response(body, flavor)
    except ExtractionError as exc:
        logger.error("[API] %s", exc.message)
        return ExtractionResult(batch=annotate(_new_batch(request), exc))
    except Exception as exc:
        logger.exception("[API] Unexpected extraction failure for %s", request.url)
        error = ExtractionError(f"Unexpected extraction failure: {exc}")
        return ExtractionResult(batch=annotate(_new_batch(request), error))

    logger.info("[API] Processed %d record(s)", len(records))
    batch = _new_batch(request, records=records)
    if not records:
        annotate(batch, NoRowsExtracted("API response contained no records"))

    try:
        continuation = resolve_api_continuation(request, body, len(records))
    except Exception as exc:
        logger.warning("[PAGINATION] Continuation check failed: %s", exc)
        return ExtractionResult(batch=batch)
    if continuation.found:
        logger.info("[PAGINATION] API has more pages via %s", continuation.strategy)
    return ExtractionResult(batch=batch, next=continuation.next)
