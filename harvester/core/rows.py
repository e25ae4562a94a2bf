"""Row extraction: turn a table's data rows into column-keyed records."""

from __future__ import annotations

import re
from typing import Any

from harvester.core.headers import placeholder
from harvester.core.table import (
    body_rows,
    data_cells,
    has_header_section,
    row_cells,
    spans_cells,
)
from harvester.core.text import clean_numeric, extract_cell_text, is_numeric_shaped
from harvester.log import get_logger
from harvester.models import ExtractedRow
from harvester.page import PageHandle

logger = get_logger(__name__)

NUMERIC_COLUMN = re.compile(
    r"rank|number|count|total|sum|avg|population|percent|rate|ratio|index|score|rating",
    re.IGNORECASE,
)


def is_numeric_column(name: str) -> bool:
    return bool(NUMERIC_COLUMN.search(name))


def _looks_like_header_row(page: PageHandle, row: Any, following: Any | None) -> bool:
    """Structural header heuristic for tables without a ``thead``."""
    cells = row_cells(page, row)
    if spans_cells(page, cells):
        return True
    if following is not None and len(cells) != len(row_cells(page, following)):
        return True
    return False


def _data_rows(page: PageHandle, table: Any, consumed_first_row: bool) -> list[Any]:
    rows = body_rows(page, table)
    if not rows:
        return []
    if consumed_first_row:
        return rows[1:]
    if not has_header_section(page, table):
        following = rows[1] if len(rows) > 1 else None
        if _looks_like_header_row(page, rows[0], following):
            return rows[1:]
    return rows


def _rowspan(page: PageHandle, cell: Any) -> int:
    value = (page.attribute(cell, "rowspan") or "").strip()
    return int(value) if value.isdigit() and int(value) > 1 else 1


def _positioned_values(
    page: PageHandle, row: Any, carried: dict[int, tuple[int, str]]
) -> list[str]:
    """Cell texts of *row* by column position, with rowspan values filled in.

    *carried* maps a column position to ``(rows_left, value)`` for cells
    spanning down from earlier rows; it is updated in place.
    """
    values: list[str] = []
    cells = iter(row_cells(page, row))
    position = 0
    while True:
        if position in carried:
            rows_left, value = carried[position]
            if rows_left <= 1:
                del carried[position]
            else:
                carried[position] = (rows_left - 1, value)
            values.append(value)
        else:
            cell = next(cells, None)
            if cell is None:
                break
            value = extract_cell_text(page, cell)
            span = _rowspan(page, cell)
            if span > 1:
                carried[position] = (span - 1, value)
            values.append(value)
        position += 1
    # Spans positioned past this row's last cell end here.
    for stale in [p for p in carried if p > position]:
        del carried[stale]
    return values


def extract_rows(
    page: PageHandle,
    table: Any,
    headers: list[str],
    consumed_first_row: bool = False,
) -> list[ExtractedRow]:
    """Map every data row of *table* onto *headers*.

    Rows without any ``td`` are separators or section headings and are
    skipped.  A cell with ``rowspan`` repeats its value in the rows it spans,
    so later cells keep their column.  Cells past the end of *headers* get
    ``Column_N`` names instead of being dropped.  Values in numeric-looking
    columns are reduced to digits, ``.`` and ``-`` when the cell itself is
    numeric-shaped.
    """
    records: list[ExtractedRow] = []
    carried: dict[int, tuple[int, str]] = {}
    for row in _data_rows(page, table, consumed_first_row):
        if not data_cells(page, row):
            continue
        record: ExtractedRow = {}
        for i, value in enumerate(_positioned_values(page, row, carried)):
            name = headers[i] if i < len(headers) else placeholder(i)
            if is_numeric_column(name) and is_numeric_shaped(value):
                value = clean_numeric(value)
            record[name] = value
        records.append(record)

    logger.debug("[ROWS] Extracted %d row(s) against %d header(s)", len(records), len(headers))
    return records


def column_info(headers: list[str], records: list[ExtractedRow]) -> dict[str, Any]:
    """Describe the columns present in *records* for the dataset record."""
    columns = list(headers)
    for record in records:
        for name in record:
            if name not in columns:
                columns.append(name)
    return {
        "headers": list(headers),
        "columns": columns,
        "numericColumns": [name for name in columns if is_numeric_column(name)],
    }
