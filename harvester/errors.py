"""Error taxonomy for a single extraction unit.

These exceptions are raised inside the core and converted into
error-annotated :class:`~harvester.models.ResultBatch` objects at the
pipeline boundary; none of them escape a public entry point.
"""

from __future__ import annotations

from typing import Any


class ExtractionError(Exception):
    """Base class; ``kind`` is the tag written to the dataset record."""

    kind = "ExtractionError"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NoTableFound(ExtractionError):
    kind = "NoTableFound"


class NoRowsExtracted(ExtractionError):
    kind = "NoRowsExtracted"


class MalformedApiResponse(ExtractionError):
    kind = "MalformedApiResponse"


class UpstreamHttpError(ExtractionError):
    kind = "UpstreamHttpError"

    def __init__(self, status_code: int, body_preview: str = "") -> None:
        super().__init__(
            f"API responded with status: {status_code}",
            status_code=status_code,
            body_preview=body_preview,
        )
        self.status_code = status_code


class PaginationStrategyFailure(ExtractionError):
    kind = "PaginationStrategyFailure"


class FetchFailed(ExtractionError):
    """The fetch layer raised before the core could run for a unit."""

    kind = "FetchFailed"
