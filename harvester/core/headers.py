"""Header resolution for a discovered table."""

from __future__ import annotations

from typing import Any

from harvester.core.table import body_rows, data_cells, header_cells, header_rows, row_cells
from harvester.core.text import clean_text
from harvester.models import HeaderResolution
from harvester.page import PageHandle


def placeholder(index: int) -> str:
    """Synthesised column name for the 0-based *index*."""
    return f"Column_{index + 1}"


def unique_headers(names: list[str]) -> list[str]:
    """Fill empty names with placeholders and suffix duplicates (``_2``, ``_3``…)."""
    seen: dict[str, int] = {}
    result: list[str] = []
    for i, name in enumerate(names):
        base = name or placeholder(i)
        candidate = base
        while candidate in seen:
            seen[base] += 1
            candidate = f"{base}_{seen[base]}"
        seen.setdefault(candidate, 1)
        result.append(candidate)
    return result


def _texts(page: PageHandle, cells: list[Any]) -> list[str]:
    return [clean_text(page.text_content(cell)) for cell in cells]


def resolve_headers(page: PageHandle, table: Any) -> HeaderResolution:
    """Determine the ordered column names of *table*.

    Tried in order, first success wins:

    1. ``th`` cells of the first ``thead`` row (plain cells if it has none).
    2. ``th`` cells of the first body row.
    3. ``td`` cells of the first body row, when at least one has text.
    4. ``Column_N`` placeholders for the first non-empty row's cell count.

    Cases 2 and 3 report ``consumed_first_row`` so the row extractor does not
    emit the header row as data.
    """
    head = header_rows(page, table)
    if head:
        cells = header_cells(page, head[0]) or row_cells(page, head[0])
        if cells:
            return HeaderResolution(unique_headers(_texts(page, cells)), False, "thead")

    rows = body_rows(page, table)
    if not rows:
        return HeaderResolution([], False, "none")

    first = rows[0]
    cells = header_cells(page, first)
    if cells:
        return HeaderResolution(unique_headers(_texts(page, cells)), True, "body-th")

    cells = data_cells(page, first)
    texts = _texts(page, cells)
    if any(texts):
        return HeaderResolution(unique_headers(texts), True, "body-td")

    for row in rows:
        count = len(row_cells(page, row))
        if count:
            return HeaderResolution([placeholder(i) for i in range(count)], False, "synthesized")
    return HeaderResolution([], False, "none")
