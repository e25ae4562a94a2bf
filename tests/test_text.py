"""Tests for the cell/text normaliser."""

from __future__ import annotations

import pytest

from harvester.core.text import clean_numeric, clean_text, extract_cell_text, is_numeric_shaped
from harvester.page import SoupPage


class TestCleanText:
    def test_strips_citation_markers(self) -> None:
        assert clean_text("Albuquerque[1][23]") == "Albuquerque"

    def test_collapses_whitespace(self) -> None:
        assert clean_text("  Las \n\t Cruces  ") == "Las Cruces"

    def test_keeps_non_numeric_brackets(self) -> None:
        assert clean_text("Santa Fe [a]") == "Santa Fe [a]"

    def test_none_returns_empty(self) -> None:
        assert clean_text(None) == ""


class TestCleanNumeric:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1,234", "1234"),
            ("-3.5 km", "-3.5"),
            ("12%", "12"),
            ("$ 1,000.50", "1000.50"),
        ],
    )
    def test_keeps_digits_dot_and_minus(self, raw: str, expected: str) -> None:
        assert clean_numeric(raw) == expected

    def test_empty_input(self) -> None:
        assert clean_numeric("") == ""
        assert clean_numeric(None) == ""


class TestIsNumericShaped:
    def test_numbers_with_separators(self) -> None:
        assert is_numeric_shaped("1,234")
        assert is_numeric_shaped("+4.5%")
        assert is_numeric_shaped("1 234")

    def test_words_are_not_numeric(self) -> None:
        assert not is_numeric_shaped("Austin")
        assert not is_numeric_shaped("12 km")
        assert not is_numeric_shaped("")


class TestExtractCellText:
    def _cell(self, html: str):
        page = SoupPage(f"<table><tr>{html}</tr></table>")
        return page, page.query("td")

    def test_prefers_link_text(self) -> None:
        page, cell = self._cell('<td>City of <a href="/wiki/Austin">Austin</a>[4]</td>')
        assert extract_cell_text(page, cell) == "Austin"

    def test_falls_back_to_cell_text(self) -> None:
        page, cell = self._cell("<td> Dallas <sup>[2]</sup></td>")
        assert extract_cell_text(page, cell) == "Dallas"

    def test_skips_footnote_only_links(self) -> None:
        page, cell = self._cell('<td>Roswell<sup><a href="#cite-1">[1]</a></sup></td>')
        assert extract_cell_text(page, cell) == "Roswell"

    def test_missing_cell_returns_empty(self) -> None:
        page = SoupPage("<p>no cells</p>")
        assert extract_cell_text(page, None) == ""
