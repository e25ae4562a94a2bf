"""Extraction core: table discovery, row normalisation and pagination."""

from harvester.core.api import normalize_api_response, parse_json_body
from harvester.core.discovery import find_target_table, score_tables
from harvester.core.headers import resolve_headers
from harvester.core.pagination import resolve_api_continuation, resolve_html_continuation
from harvester.core.pipeline import analyze_page, extract_from_page, extract_from_response
from harvester.core.rows import extract_rows
from harvester.core.text import clean_numeric, clean_text, extract_cell_text

__all__ = [
    "analyze_page",
    "clean_numeric",
    "clean_text",
    "extract_cell_text",
    "extract_from_page",
    "extract_from_response",
    "extract_rows",
    "find_target_table",
    "normalize_api_response",
    "parse_json_body",
    "resolve_api_continuation",
    "resolve_headers",
    "resolve_html_continuation",
    "score_tables",
]
