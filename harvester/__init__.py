"""Table harvester: tables and paginated JSON APIs to structured rows."""

from harvester.core import (
    extract_from_page,
    extract_from_response,
    find_target_table,
    normalize_api_response,
    resolve_headers,
)
from harvester.crawler import Crawler
from harvester.models import (
    ExtractionRequest,
    ExtractionResult,
    FetchResponse,
    PaginationState,
    ResultBatch,
    SourceHints,
)
from harvester.page import PageHandle, SoupPage

__all__ = [
    "Crawler",
    "ExtractionRequest",
    "ExtractionResult",
    "FetchResponse",
    "PageHandle",
    "PaginationState",
    "ResultBatch",
    "SoupPage",
    "SourceHints",
    "extract_from_page",
    "extract_from_response",
    "find_target_table",
    "normalize_api_response",
    "resolve_headers",
]
