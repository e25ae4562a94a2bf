"""Queue owner: runs extraction units and schedules their continuations.

Each start request owns its continuation chain, processed sequentially so
its pagination state is never shared.  Independent chains run in parallel
on a ``ThreadPoolExecutor`` bounded by ``max_concurrency``.  Failures are
recorded in the dataset and never abort the run.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable

import httpx

from harvester.config import settings
from harvester.core.pipeline import annotate, body_preview, extract_from_page, extract_from_response
from harvester.errors import FetchFailed, UpstreamHttpError
from harvester.fetcher import FetchProvider, HttpxFetcher, fetch_page
from harvester.log import get_logger
from harvester.models import ExtractionRequest, ExtractionResult, ResultBatch
from harvester.page import PageHandle
from harvester.sink import Sink

logger = get_logger(__name__)

PageLoader = Callable[[str], PageHandle]


@dataclass
class ChainSummary:
    """What happened to one start URL and its continuations."""

    start_url: str
    pages: int = 0
    rows: int = 0
    errors: list[str] = field(default_factory=list)


class Crawler:
    def __init__(
        self,
        sink: Sink,
        fetcher: FetchProvider | None = None,
        page_loader: PageLoader | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self.sink = sink
        self.fetcher = fetcher
        self._owns_fetcher = False
        self.page_loader = page_loader or fetch_page
        self.max_concurrency = max(1, max_concurrency or settings.max_concurrency)

    def _open_fetcher(self) -> None:
        self.fetcher = HttpxFetcher()
        self._owns_fetcher = True

    def close(self) -> None:
        """Close the HTTP client if this crawler created it."""
        if self._owns_fetcher and self.fetcher is not None:
            self.fetcher.close()
            self.fetcher = None
        self._owns_fetcher = False

    # ------------------------------------------------------------------
    # Single unit
    # ------------------------------------------------------------------
    def _failed(self, request: ExtractionRequest, exc: Exception) -> ExtractionResult:
        batch = ResultBatch(
            url=request.url,
            source_type=request.mode,
            title=request.title,
            label=request.label,
            page_number=request.state.page_number,
        )
        if isinstance(exc, httpx.HTTPStatusError):
            error = UpstreamHttpError(
                exc.response.status_code, body_preview(exc.response.text)
            )
        else:
            error = FetchFailed(f"Request failed: {exc}", exception=type(exc).__name__)
        return ExtractionResult(batch=annotate(batch, error))

    def run_unit(self, request: ExtractionRequest) -> ExtractionResult:
        """Fetch one unit and hand it to the core."""
        try:
            if request.mode == "api":
                if self.fetcher is None:
                    self._open_fetcher()
                response = self.fetcher.send(
                    request.url, request.method, request.headers, request.body
                )
                return extract_from_response(response, request)
            page = self.page_loader(request.url)
        except Exception as exc:
            logger.error("[CRAWL] Request %s failed: %s", request.url, exc)
            return self._failed(request, exc)
        return extract_from_page(page, request)

    # ------------------------------------------------------------------
    # Chains
    # ------------------------------------------------------------------
    def run_chain(self, request: ExtractionRequest) -> ChainSummary:
        """Process *request* and every continuation it produces."""
        summary = ChainSummary(start_url=request.url)
        current: ExtractionRequest | None = request
        while current is not None:
            result = self.run_unit(current)
            self.sink.append(result.batch)
            summary.pages += 1
            summary.rows += result.batch.row_count
            if result.batch.error_kind:
                summary.errors.append(f"{result.batch.error_kind}: {result.batch.error}")
            current = result.next
        logger.info(
            "[CRAWL] %s: %d page(s), %d row(s), %d error(s)",
            summary.start_url, summary.pages, summary.rows, len(summary.errors),
        )
        return summary

    def run(self, requests: list[ExtractionRequest]) -> list[ChainSummary]:
        """Run every start request; summaries come back in input order."""
        summaries: dict[int, ChainSummary] = {}
        if self.fetcher is None and any(r.mode == "api" for r in requests):
            self._open_fetcher()
        try:
            with ThreadPoolExecutor(max_workers=self.max_concurrency) as pool:
                future_to_index = {
                    pool.submit(self.run_chain, request): i for i, request in enumerate(requests)
                }
                for future in as_completed(future_to_index):
                    i = future_to_index[future]
                    try:
                        summaries[i] = future.result()
                    except Exception as exc:
                        logger.error("[CRAWL] Chain for %s aborted: %s", requests[i].url, exc)
                        summaries[i] = ChainSummary(start_url=requests[i].url, errors=[str(exc)])
        finally:
            self.close()
        return [summaries[i] for i in range(len(requests))]
