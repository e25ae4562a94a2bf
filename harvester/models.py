"""Data models for the extraction pipeline.

These are plain dataclasses.  Requests and pagination state are frozen so a
continuation always produces a new value instead of mutating the one it was
derived from.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Literal

Mode = Literal["html", "api"]
PaginationStrategy = Literal["auto", "page", "offset", "cursor", "none"]

ExtractedRow = dict[str, str]


@dataclass(frozen=True)
class SourceHints:
    """Optional per-request overrides for discovery and pagination."""

    table_selector: str | None = None
    api_flavor: str | None = None
    pagination: PaginationStrategy = "auto"
    page_param: str = "page"
    offset_param: str = "offset"
    limit_param: str = "limit"
    cursor_param: str = "cursor"


@dataclass(frozen=True)
class PaginationState:
    """Loop-prevention state threaded through one continuation chain."""

    visited_urls: frozenset[str] = frozenset()
    visited_offsets: frozenset[str] = frozenset()
    page_number: int = 1

    def advance(self, url: str | None = None, key: str | None = None) -> PaginationState:
        """Return the state for the next unit, recording *url* and *key*."""
        urls = self.visited_urls | {url} if url else self.visited_urls
        keys = self.visited_offsets | {key} if key else self.visited_offsets
        return PaginationState(
            visited_urls=urls,
            visited_offsets=keys,
            page_number=self.page_number + 1,
        )


@dataclass(frozen=True)
class ExtractionRequest:
    url: str
    mode: Mode = "html"
    hints: SourceHints = field(default_factory=SourceHints)
    state: PaginationState = field(default_factory=PaginationState)
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict, hash=False)
    body: dict[str, Any] | None = field(default=None, hash=False)
    label: str | None = None
    title: str | None = None
    max_pages: int = 0

    def continued(self, **changes: Any) -> ExtractionRequest:
        """Copy of this request with *changes* applied."""
        return replace(self, **changes)

    @property
    def page_limit_reached(self) -> bool:
        return self.max_pages > 0 and self.state.page_number >= self.max_pages


@dataclass
class TableCandidate:
    index: int
    element: Any
    table_id: str | None
    classes: frozenset[str]
    header_texts: list[str]
    row_count: int
    score: int = 0

    @property
    def header_count(self) -> int:
        return len(self.header_texts)

    def summary(self) -> dict[str, Any]:
        """JSON-safe description without the element handle."""
        return {
            "index": self.index,
            "id": self.table_id,
            "className": " ".join(sorted(self.classes)) or None,
            "headerCount": self.header_count,
            "headers": self.header_texts,
            "rowCount": self.row_count,
            "score": self.score,
        }


@dataclass
class TableSelection:
    found: bool
    reason: str
    selector: str | None = None
    element: Any = None
    candidate: TableCandidate | None = None


@dataclass
class HeaderResolution:
    headers: list[str]
    consumed_first_row: bool = False
    source: str = "none"


@dataclass
class FetchResponse:
    status_code: int
    body: Any
    headers: dict[str, str] = field(default_factory=dict)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ResultBatch:
    """One dataset record: everything extracted from one unit."""

    url: str
    source_type: Mode
    records: list[Any] = field(default_factory=list)
    timestamp: str = field(default_factory=_utc_now)
    column_info: dict[str, Any] | None = None
    title: str | None = None
    label: str | None = None
    page_number: int = 1
    error: str | None = None
    error_kind: str | None = None
    error_details: dict[str, Any] = field(default_factory=dict)

    @property
    def row_count(self) -> int:
        return len(self.records)

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the dataset record shape."""
        record: dict[str, Any] = {
            "url": self.url,
            "title": self.title,
            "timestamp": self.timestamp,
            "sourceType": self.source_type,
            "pageNumber": self.page_number,
            "rowCount": self.row_count,
            "records": self.records,
        }
        if self.label:
            record["label"] = self.label
        if self.column_info is not None:
            record["columnInfo"] = self.column_info
        if self.error_kind is not None:
            record["error"] = self.error
            record["errorKind"] = self.error_kind
            if self.error_details:
                record["errorDetails"] = self.error_details
        return record


@dataclass
class ExtractionResult:
    batch: ResultBatch
    next: ExtractionRequest | None = None
