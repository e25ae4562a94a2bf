"""Cell and text normalisation helpers."""

from __future__ import annotations

import re
from typing import Any

from harvester.page import PageHandle

_CITATION = re.compile(r"\[\d+\]")
_WHITESPACE = re.compile(r"\s+")
_NON_NUMERIC = re.compile(r"[^\d.\-]")
_NUMERIC_SHAPE = re.compile(r"^[\d.,\-+%]+$")


def clean_text(text: str | None) -> str:
    """Strip ``[12]``-style citation markers and collapse whitespace."""
    if not text:
        return ""
    text = _CITATION.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def clean_numeric(text: str | None) -> str:
    """Keep only digits, ``.`` and ``-``; ``"1,234"`` becomes ``"1234"``."""
    if not text:
        return ""
    return _NON_NUMERIC.sub("", text).strip()


def is_numeric_shaped(text: str | None) -> bool:
    """Return ``True`` for values like ``"1,234"``, ``"-3.5"`` or ``"12%"``."""
    if not text:
        return False
    return bool(_NUMERIC_SHAPE.match(_WHITESPACE.sub("", text)))


def extract_cell_text(page: PageHandle, cell: Any) -> str:
    """Return the cleaned text of the cell's first link, else of the cell.

    Links whose text cleans down to nothing (footnote anchors such as
    ``<sup><a>[3]</a></sup>``) are passed over.
    """
    if cell is None:
        return ""
    for link in page.query_all("a", root=cell):
        text = clean_text(page.text_content(link))
        if text:
            return text
    return clean_text(page.text_content(cell))
