"""Tests for the crawler (queue owner) and the dataset sinks.

Pages are served from an in-memory dict through a fake page loader; API
responses come from a scripted fetch provider, so nothing touches the
network.
"""

from __future__ import annotations

import httpx

from harvester.crawler import Crawler
from harvester.models import ExtractionRequest, FetchResponse, SourceHints
from harvester.page import SoupPage
from harvester.sink import JsonlDataset, MemoryDataset


def _table_page(url: str, rows: list[tuple[str, str]], next_href: str | None = None) -> SoupPage:
    body = "".join(f"<tr><td>{a}</td><td>{b}</td></tr>" for a, b in rows)
    link = f'<a rel="next" href="{next_href}">next</a>' if next_href else ""
    html = (
        '<table class="wikitable"><thead><tr><th>Name</th><th>Count</th></tr></thead>'
        f"<tbody>{body}</tbody></table>{link}"
    )
    return SoupPage(html, url=url)


class _Pages:
    def __init__(self, pages: dict[str, SoupPage]) -> None:
        self.pages = pages
        self.loaded: list[str] = []

    def __call__(self, url: str) -> SoupPage:
        self.loaded.append(url)
        if url not in self.pages:
            request = httpx.Request("GET", url)
            raise httpx.HTTPStatusError(
                "404", request=request, response=httpx.Response(404, request=request, text="gone")
            )
        return self.pages[url]


class _ScriptedFetcher:
    def __init__(self, responses: list[FetchResponse]) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, str, dict | None]] = []
        self.closed = False

    def send(self, url, method="GET", headers=None, body=None) -> FetchResponse:
        self.calls.append((url, method, body))
        return self.responses.pop(0)

    def close(self) -> None:
        self.closed = True


class TestHtmlChains:
    def test_follows_pages_until_loop(self) -> None:
        pages = _Pages({
            "https://x.org/1": _table_page("https://x.org/1", [("a", "1,000")], "/2"),
            "https://x.org/2": _table_page("https://x.org/2", [("b", "2")], "/1"),
        })
        sink = MemoryDataset()
        (summary,) = Crawler(sink, page_loader=pages).run([ExtractionRequest(url="https://x.org/1")])

        assert pages.loaded == ["https://x.org/1", "https://x.org/2"]
        assert summary.pages == 2
        assert summary.rows == 2
        assert summary.errors == []
        assert [item["records"] for item in sink.items] == [
            [{"Name": "a", "Count": "1000"}],
            [{"Name": "b", "Count": "2"}],
        ]
        assert [item["pageNumber"] for item in sink.items] == [1, 2]

    def test_max_pages_stops_chain(self) -> None:
        pages = _Pages({
            "https://x.org/1": _table_page("https://x.org/1", [("a", "1")], "/2"),
            "https://x.org/2": _table_page("https://x.org/2", [("b", "2")], "/3"),
        })
        crawler = Crawler(MemoryDataset(), page_loader=pages)
        (summary,) = crawler.run([ExtractionRequest(url="https://x.org/1", max_pages=1)])
        assert summary.pages == 1

    def test_fetch_failure_is_recorded(self) -> None:
        pages = _Pages({})
        sink = MemoryDataset()
        (summary,) = Crawler(sink, page_loader=pages).run([ExtractionRequest(url="https://x.org/404")])

        assert summary.pages == 1
        assert summary.rows == 0
        (item,) = sink.items
        assert item["errorKind"] == "UpstreamHttpError"
        assert item["errorDetails"]["status_code"] == 404

    def test_independent_chains_keep_separate_state(self) -> None:
        pages = _Pages({
            "https://a.org/": _table_page("https://a.org/", [("a", "1")], "https://b.org/"),
            "https://b.org/": _table_page("https://b.org/", [("b", "2")]),
        })
        crawler = Crawler(MemoryDataset(), page_loader=pages, max_concurrency=2)
        summaries = crawler.run(
            [ExtractionRequest(url="https://a.org/"), ExtractionRequest(url="https://b.org/")]
        )
        # b.org is reached from a.org's chain and also starts its own chain
        assert [s.pages for s in summaries] == [2, 1]
        assert sorted(pages.loaded) == ["https://a.org/", "https://b.org/", "https://b.org/"]


class TestApiChains:
    def test_asha_offset_chain(self) -> None:
        fetcher = _ScriptedFetcher([
            FetchResponse(200, {"results": [{"id": 1}, {"id": 2}], "pagination": {"totalResults": 3}}),
            FetchResponse(200, {"results": [{"id": 3}], "pagination": {"totalResults": 3}}),
        ])
        request = ExtractionRequest(
            url="https://find.asha.org/api/search",
            mode="api",
            method="POST",
            body={"firstResult": 0, "numberOfResults": 2},
            hints=SourceHints(api_flavor="asha"),
        )
        sink = MemoryDataset()
        (summary,) = Crawler(sink, fetcher=fetcher).run([request])

        assert summary.pages == 2
        assert summary.rows == 3
        assert [call[2]["firstResult"] for call in fetcher.calls] == [0, 2]
        assert sink.items[1]["records"] == [{"id": 3}]

    def test_upstream_error_ends_chain(self) -> None:
        fetcher = _ScriptedFetcher([FetchResponse(502, "Bad gateway")])
        sink = MemoryDataset()
        request = ExtractionRequest(
            url="https://api.example.com/items", mode="api", hints=SourceHints(pagination="page")
        )
        (summary,) = Crawler(sink, fetcher=fetcher).run([request])

        assert summary.pages == 1
        assert summary.errors == ["UpstreamHttpError: API responded with status: 502"]
        assert sink.items[0]["errorDetails"]["body_preview"] == "Bad gateway"

    def test_transport_error_is_recorded(self) -> None:
        class _Broken:
            def send(self, *args, **kwargs):
                raise httpx.ConnectTimeout("timed out")

        sink = MemoryDataset()
        Crawler(sink, fetcher=_Broken()).run(
            [ExtractionRequest(url="https://api.example.com/items", mode="api")]
        )
        assert sink.items[0]["errorKind"] == "FetchFailed"
        assert sink.items[0]["errorDetails"] == {"exception": "ConnectTimeout"}

    def test_own_http_client_is_closed_after_run(self, monkeypatch) -> None:
        created: list[_ScriptedFetcher] = []

        class _ClosingFetcher(_ScriptedFetcher):
            def __init__(self) -> None:
                super().__init__([FetchResponse(200, {"data": []})])
                created.append(self)

        monkeypatch.setattr("harvester.crawler.HttpxFetcher", _ClosingFetcher)
        crawler = Crawler(MemoryDataset())
        crawler.run([ExtractionRequest(url="https://api.example.com/items", mode="api")])

        assert len(created) == 1
        assert created[0].closed is True
        assert crawler.fetcher is None

    def test_supplied_fetcher_is_left_open(self) -> None:
        fetcher = _ScriptedFetcher([FetchResponse(200, {"data": []})])
        crawler = Crawler(MemoryDataset(), fetcher=fetcher)
        crawler.run([ExtractionRequest(url="https://api.example.com/items", mode="api")])

        assert crawler.fetcher is fetcher
        assert fetcher.closed is False


class TestJsonlDataset:
    def test_appends_one_line_per_batch(self, tmp_path) -> None:
        path = tmp_path / "out" / "dataset.jsonl"
        sink = JsonlDataset(path)
        fetcher = _ScriptedFetcher([FetchResponse(200, [{"a": "ä"}]), FetchResponse(200, [])])
        crawler = Crawler(sink, fetcher=fetcher)
        crawler.run_chain(ExtractionRequest(url="https://api.example.com/a", mode="api"))
        crawler.run_chain(ExtractionRequest(url="https://api.example.com/b", mode="api"))

        items = sink.read()
        assert [item["rowCount"] for item in items] == [1, 0]
        assert items[0]["records"] == [{"a": "ä"}]
        assert items[1]["errorKind"] == "NoRowsExtracted"
        assert path.read_text(encoding="utf-8").count("\n") == 2

    def test_read_missing_file(self, tmp_path) -> None:
        assert JsonlDataset(tmp_path / "none.jsonl").read() == []
