"""Table discovery: pick the table on a page most likely to hold the data.

Strategies, first success wins:

1. An explicit selector from the request hints.
2. ``table.wikitable.sortable`` (the common Wikipedia list layout).
3. Any ``table.wikitable``.
4. Structural scoring of every table on the page; only tables with more
   than :data:`MIN_FALLBACK_ROWS` body rows are eligible.
"""

from __future__ import annotations

from typing import Any

from harvester.core.table import body_rows
from harvester.core.text import clean_text
from harvester.log import get_logger
from harvester.models import TableCandidate, TableSelection
from harvester.page import PageHandle

logger = get_logger(__name__)

CLASS_WEIGHTS: dict[str, int] = {
    "wikitable": 50,
    "sortable": 30,
    "data": 20,
    "grid": 20,
    "list": 15,
}
ROW_SCORE_CAP = 50
HEADER_WEIGHT = 2
MIN_FALLBACK_ROWS = 5


def score_candidate(classes: frozenset[str], row_count: int, header_count: int) -> int:
    """Structural score of a single table."""
    score = sum(weight for name, weight in CLASS_WEIGHTS.items() if name in classes)
    score += min(row_count, ROW_SCORE_CAP)
    score += HEADER_WEIGHT * header_count
    return score


def describe_table(page: PageHandle, table: Any, index: int) -> TableCandidate:
    classes = page.class_list(table)
    headers = [clean_text(page.text_content(th)) for th in page.query_all("th", root=table)]
    row_count = len(body_rows(page, table))
    return TableCandidate(
        index=index,
        element=table,
        table_id=page.attribute(table, "id") or None,
        classes=classes,
        header_texts=headers,
        row_count=row_count,
        score=score_candidate(classes, row_count, len(headers)),
    )


def score_tables(page: PageHandle) -> list[TableCandidate]:
    """Describe and score every table on *page*, in document order."""
    return [describe_table(page, table, i) for i, table in enumerate(page.query_all("table"))]


def _selector_for(candidate: TableCandidate) -> str:
    if candidate.table_id:
        return f"#{candidate.table_id}"
    if candidate.classes:
        return "table." + ".".join(sorted(candidate.classes))
    return f"table:nth-of-type({candidate.index + 1})"


def _by_selector(page: PageHandle, selector: str) -> TableSelection:
    try:
        element = page.query(selector)
    except Exception as exc:
        logger.warning("[DISCOVERY] Invalid table selector %r: %s", selector, exc)
        return TableSelection(found=False, reason=f"Invalid selector {selector!r}: {exc}")
    if element is None:
        return TableSelection(found=False, reason=f"No element matches {selector!r}")
    return TableSelection(
        found=True,
        selector=selector,
        element=element,
        reason=f"Matched explicit selector {selector!r}",
    )


def find_target_table(page: PageHandle, explicit_selector: str | None = None) -> TableSelection:
    """Locate the table to extract.  Never raises; failures set ``found=False``."""
    if explicit_selector:
        return _by_selector(page, explicit_selector)

    try:
        for selector, reason in (
            ("table.wikitable.sortable", "Found wikitable sortable"),
            ("table.wikitable", "Found wikitable"),
        ):
            element = page.query(selector)
            if element is not None:
                return TableSelection(found=True, selector=selector, element=element, reason=reason)

        candidates = score_tables(page)
    except Exception as exc:
        logger.error("[DISCOVERY] Table analysis failed: %s", exc)
        return TableSelection(found=False, reason=f"Table analysis failed: {exc}")

    if not candidates:
        return TableSelection(found=False, reason="No tables on page")

    best: TableCandidate | None = None
    for candidate in candidates:
        if candidate.row_count <= MIN_FALLBACK_ROWS:
            continue
        # strict ">" keeps the first table in document order on ties
        if best is None or candidate.score > best.score:
            best = candidate

    if best is None:
        return TableSelection(
            found=False,
            reason=(
                f"No suitable table found ({len(candidates)} table(s), "
                f"none with more than {MIN_FALLBACK_ROWS} rows)"
            ),
        )

    return TableSelection(
        found=True,
        selector=_selector_for(best),
        element=best.element,
        candidate=best,
        reason=f"Selected table {best.index} with score {best.score} ({best.row_count} rows)",
    )
