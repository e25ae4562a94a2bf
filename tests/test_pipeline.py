"""Tests for the per-unit extraction entry points."""

from __future__ import annotations

from unittest.mock import patch

from harvester.core.pipeline import analyze_page, extract_from_page, extract_from_response
from harvester.models import ExtractionRequest, FetchResponse, SourceHints
from harvester.page import SoupPage

_URL = "https://en.wikipedia.org/wiki/List_of_cities"

_WIKI_PAGE = """\
<html><body>
<table class="infobox"><tr><th>About</th><td>x</td></tr></table>
<table class="wikitable sortable">
  <thead><tr><th>Rank</th><th>City</th><th>Population</th></tr></thead>
  <tbody>
    <tr><td>1</td><td><a href="/wiki/Austin">Austin</a></td><td>961,855[3]</td></tr>
    <tr><td>2</td><td><a href="/wiki/Dallas">Dallas</a></td><td>1,304,379</td></tr>
  </tbody>
</table>
<a rel="next" href="/wiki/List_of_cities_(page_2)">next page</a>
</body></html>
"""


def _html_request(**kwargs) -> ExtractionRequest:
    return ExtractionRequest(url=_URL, mode="html", **kwargs)


class TestExtractFromPage:
    def test_rows_and_continuation(self) -> None:
        result = extract_from_page(SoupPage(_WIKI_PAGE, url=_URL), _html_request())
        batch = result.batch

        assert batch.ok
        assert batch.source_type == "html"
        assert batch.records == [
            {"Rank": "1", "City": "Austin", "Population": "961855"},
            {"Rank": "2", "City": "Dallas", "Population": "1304379"},
        ]
        assert batch.row_count == 2
        assert batch.column_info["numericColumns"] == ["Rank", "Population"]
        assert result.next is not None
        assert result.next.url == "https://en.wikipedia.org/wiki/List_of_cities_(page_2)"
        assert result.next.state.page_number == 2

    def test_no_table_is_reported(self) -> None:
        page = SoupPage("<html><body><p>No data</p></body></html>", url=_URL)
        result = extract_from_page(page, _html_request())

        assert result.next is None
        assert result.batch.records == []
        assert result.batch.error_kind == "NoTableFound"
        assert result.batch.error_details == {"table_count": 0}

    def test_explicit_selector_without_match(self) -> None:
        page = SoupPage(_WIKI_PAGE, url=_URL)
        result = extract_from_page(page, _html_request(hints=SourceHints(table_selector="#nope")))
        assert result.batch.error_kind == "NoTableFound"

    def test_table_without_rows(self) -> None:
        page = SoupPage(
            '<table class="wikitable"><thead><tr><th>A</th></tr></thead><tbody></tbody></table>',
            url=_URL,
        )
        result = extract_from_page(page, _html_request())
        assert result.batch.error_kind == "NoRowsExtracted"
        assert result.batch.row_count == 0
        assert result.batch.error_details == {"table_selector": "table.wikitable"}

    def test_unexpected_error_does_not_raise(self) -> None:
        page = SoupPage(_WIKI_PAGE, url=_URL)
        with patch("harvester.core.pipeline.resolve_headers", side_effect=RuntimeError("boom")):
            result = extract_from_page(page, _html_request())
        assert result.batch.error_kind == "ExtractionError"
        assert "boom" in result.batch.error

    def test_pagination_failure_keeps_rows(self) -> None:
        page = SoupPage(_WIKI_PAGE, url=_URL)
        with patch(
            "harvester.core.pipeline.resolve_html_continuation",
            side_effect=RuntimeError("detached"),
        ):
            result = extract_from_page(page, _html_request())
        assert result.batch.ok
        assert result.batch.row_count == 2
        assert result.next is None


class TestAnalyzePage:
    def test_summarises_every_table(self) -> None:
        analysis = analyze_page(SoupPage(_WIKI_PAGE))
        assert analysis["tableCount"] == 2
        assert analysis["tables"][1]["headers"] == ["Rank", "City", "Population"]
        assert analysis["tables"][1]["rowCount"] == 2


def _api_request(**kwargs) -> ExtractionRequest:
    return ExtractionRequest(url="https://api.example.com/v1/places", mode="api", **kwargs)


class TestExtractFromResponse:
    def test_records_pass_through(self) -> None:
        response = FetchResponse(200, {"data": [{"a": 1}]})
        result = extract_from_response(response, _api_request())
        assert result.batch.ok
        assert result.batch.source_type == "api"
        assert result.batch.records == [{"a": 1}]
        assert result.next is None

    def test_empty_array_is_annotated_not_raised(self) -> None:
        result = extract_from_response(FetchResponse(200, []), _api_request())
        record = result.batch.to_dict()
        assert record["rowCount"] == 0
        assert record["errorKind"] == "NoRowsExtracted"
        assert result.next is None

    def test_upstream_error(self) -> None:
        response = FetchResponse(503, "x" * 2000)
        result = extract_from_response(response, _api_request())
        assert result.batch.error_kind == "UpstreamHttpError"
        assert result.batch.error_details["status_code"] == 503
        assert len(result.batch.error_details["body_preview"]) == 500

    def test_invalid_json(self) -> None:
        result = extract_from_response(FetchResponse(200, "<html>login</html>"), _api_request())
        assert result.batch.error_kind == "MalformedApiResponse"
        assert result.batch.records == []

    def test_null_body(self) -> None:
        result = extract_from_response(FetchResponse(200, "null"), _api_request())
        assert result.batch.error_kind == "MalformedApiResponse"

    def test_text_body_is_decoded_and_paginated(self) -> None:
        body = '{"results": [{"id": 1}], "pagination": {"totalPages": 2, "currentPage": 1}}'
        result = extract_from_response(FetchResponse(200, body), _api_request())
        assert result.batch.records == [{"id": 1}]
        assert result.next is not None
        assert result.next.url == "https://api.example.com/v1/places?page=2"


class TestResultBatchRecord:
    def test_dataset_shape(self) -> None:
        result = extract_from_page(
            SoupPage(_WIKI_PAGE, url=_URL), _html_request(label="cities", title="Cities")
        )
        record = result.batch.to_dict()
        assert record["url"] == _URL
        assert record["sourceType"] == "html"
        assert record["rowCount"] == 2
        assert record["label"] == "cities"
        assert record["title"] == "Cities"
        assert "columnInfo" in record
        assert "error" not in record
