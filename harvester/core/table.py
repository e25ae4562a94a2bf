"""Structural helpers shared by the header resolver, scorer and row extractor.

All lookups use ``:scope >`` selectors so rows and cells of nested tables
are never picked up by their parent.
"""

from __future__ import annotations

from typing import Any

from harvester.page import PageHandle

_HEAD_ROWS = ":scope > thead > tr"
_BODY_SECTIONS = ":scope > tbody"
_BODY_ROWS = ":scope > tbody > tr"
_DIRECT_ROWS = ":scope > tr"
_CELLS = ":scope > th, :scope > td"


def header_rows(page: PageHandle, table: Any) -> list[Any]:
    return page.query_all(_HEAD_ROWS, root=table)


def has_header_section(page: PageHandle, table: Any) -> bool:
    return page.query(":scope > thead", root=table) is not None


def body_rows(page: PageHandle, table: Any) -> list[Any]:
    """Rows of the explicit ``tbody`` sections, else the table's direct rows."""
    if page.query(_BODY_SECTIONS, root=table) is not None:
        return page.query_all(_BODY_ROWS, root=table)
    return page.query_all(_DIRECT_ROWS, root=table)


def row_cells(page: PageHandle, row: Any) -> list[Any]:
    """``th`` and ``td`` children of *row* in document order."""
    return page.query_all(_CELLS, root=row)


def header_cells(page: PageHandle, row: Any) -> list[Any]:
    return page.query_all(":scope > th", root=row)


def data_cells(page: PageHandle, row: Any) -> list[Any]:
    return page.query_all(":scope > td", root=row)


def spans_cells(page: PageHandle, cells: list[Any]) -> bool:
    """Return ``True`` if any cell carries a ``colspan``/``rowspan`` above 1."""
    for cell in cells:
        for name in ("colspan", "rowspan"):
            value = page.attribute(cell, name)
            if value and value.strip().isdigit() and int(value) > 1:
                return True
    return False
