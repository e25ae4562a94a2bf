"""Table harvester CLI.

Usage:
    python cli/main.py --help

Commands:
    extract   run the crawler over one or more start URLs (or an input file)
    tables    list every table on a page with its discovery score
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from harvester.xxx import
# ...` works when the CLI is invoked as `python cli/main.py`.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import List, Optional

import typer

from harvester.config import settings
from harvester.crawler import Crawler
from harvester.fetcher import fetch_page
from harvester.inputs import load_input, load_input_file
from harvester.log import configure_logging
from harvester.sink import JsonlDataset

app = typer.Typer(
    name="harvest",
    help="Extract tables and paginated API results into a JSON-lines dataset.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level."),
) -> None:
    configure_logging(log_level)


@app.command("extract")
def extract(
    urls: Optional[List[str]] = typer.Argument(None, help="Start URLs."),
    input_file: Optional[Path] = typer.Option(None, "--input", help="Actor-style input JSON file."),
    mode: str = typer.Option("auto", help="Source type: auto | html | api."),
    table_selector: Optional[str] = typer.Option(None, help="CSS selector of the table to extract."),
    api_flavor: Optional[str] = typer.Option(None, help="Named API flavor (e.g. asha)."),
    pagination: str = typer.Option("auto", help="Pagination: auto | page | offset | cursor | none."),
    max_pages: int = typer.Option(settings.max_pages, help="Stop after this many pages (0 = no limit)."),
    output: Path = typer.Option(settings.dataset_path, help="Dataset file (.jsonl)."),
) -> None:
    """Run the extraction crawler and append results to the dataset."""
    if input_file is not None:
        requests = load_input_file(input_file)
    elif urls:
        entry_options = {
            "dataSourceType": mode,
            "tableSelector": table_selector,
            "apiType": api_flavor,
            "paginationType": pagination,
            "maxPages": max_pages,
        }
        requests = load_input({"startUrls": [{"url": u, **entry_options} for u in urls]})
    else:
        typer.echo("[extract] Give at least one URL or --input FILE.")
        raise typer.Exit(1)

    sink = JsonlDataset(output)
    crawler = Crawler(sink)
    typer.echo(f"[extract] {len(requests)} start URL(s) → {output}")
    summaries = crawler.run(requests)

    failed = 0
    for summary in summaries:
        status = "✓" if not summary.errors else "✗"
        typer.echo(
            f"  {status} {summary.start_url}  pages={summary.pages}  rows={summary.rows}"
        )
        for error in summary.errors:
            typer.echo(f"      {error}")
        if summary.rows == 0:
            failed += 1

    if failed == len(summaries):
        raise typer.Exit(1)


@app.command("tables")
def tables(
    url: str = typer.Argument(..., help="Page URL to analyse."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw analysis as JSON."),
) -> None:
    """List the tables on a page with their discovery scores."""
    from harvester.core.discovery import find_target_table
    from harvester.core.pipeline import analyze_page

    page = fetch_page(url)
    analysis = analyze_page(page)
    selection = find_target_table(page)

    if as_json:
        analysis["selected"] = {"found": selection.found, "selector": selection.selector, "reason": selection.reason}
        typer.echo(json.dumps(analysis, indent=2, ensure_ascii=False))
        return

    typer.echo(f"[tables] Found {analysis['tableCount']} table(s) on {url}")
    for table in analysis["tables"]:
        headers = ", ".join(table["headers"][:6])
        typer.echo(
            f"  #{table['index']}  score={table['score']}  rows={table['rowCount']}  "
            f"class={table['className'] or '-'}  headers=[{headers}]"
        )
    typer.echo(f"[tables] Selected: {selection.selector or '(none)'} — {selection.reason}")


if __name__ == "__main__":
    app()
