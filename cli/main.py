"""scrapekit CLI — extract selector matches from web pages.

Usage:
    python cli/main.py --help

Commands:
    scrape    → one page
    paginate  → pages 1..N of a paginated listing
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from scrapekit import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import logging
from typing import Optional

import typer

from scrapekit.cache import ScrapeCache, max_age
from scrapekit.config import settings
from scrapekit.engine import ScrapeEngine
from scrapekit.errors import ExportError, PaginationError, ScrapeError
from scrapekit.exporter import to_csv, to_json

app = typer.Typer(
    name="scrapekit",
    help="Extract text from web pages with CSS selectors.",
    no_args_is_help=True,
)

_FORMATS = ("lines", "json", "csv")


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _build_engine(use_js: bool) -> ScrapeEngine:
    """Return an engine wired to ``settings`` (cache max-age, backend)."""
    freshness = max_age(settings.cache_max_age) if settings.cache_max_age is not None else None
    cache = ScrapeCache(freshness=freshness)
    if use_js:
        return ScrapeEngine.with_js(cache=cache)
    return ScrapeEngine(cache=cache)


def _check_format(fmt: str, output: Optional[Path]) -> None:
    if fmt not in _FORMATS:
        raise typer.BadParameter(f"unknown format {fmt!r}; use: {' | '.join(_FORMATS)}")
    if fmt == "csv" and output is None:
        raise typer.BadParameter("--format csv requires --output")


def _emit(items: list[str], fmt: str, output: Optional[Path], prefix: str) -> None:
    """Print or write *items* in the requested format."""
    if fmt == "csv":
        to_csv(items, output)
        typer.echo(f"[{prefix}] Wrote {len(items)} row(s) to {output}")
        return

    text = to_json(items) if fmt == "json" else "\n".join(items)
    if output is not None:
        try:
            output.write_text(text + "\n", encoding="utf-8")
        except OSError as exc:
            raise ExportError(f"cannot write {output}: {exc}", path=str(output)) from exc
        typer.echo(f"[{prefix}] Wrote {len(items)} item(s) to {output}")
    elif text:
        typer.echo(text)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Argument(..., help="URL to scrape."),
    selector: str = typer.Argument(..., help="CSS selector of the elements to extract."),
    js: bool = typer.Option(False, "--js", help="Render the page in a headless browser first."),
    fmt: str = typer.Option("lines", "--format", help="Output format: lines | json | csv."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Extract the text of every element of URL matching SELECTOR."""
    _configure_logging(verbose)
    _check_format(fmt, output)
    engine = _build_engine(js)

    try:
        items = engine.scrape(url, selector)
        _emit(items, fmt, output, "scrape")
    except ScrapeError as exc:
        typer.echo(f"[scrape] ✗ {exc}", err=True)
        raise typer.Exit(code=1)


@app.command("paginate")
def paginate(
    base_url: str = typer.Argument(..., help="Listing URL; may contain a {page} placeholder."),
    selector: str = typer.Argument(..., help="CSS selector of the elements to extract."),
    pages: int = typer.Option(..., "--pages", min=1, help="Number of pages to scrape."),
    param: str = typer.Option("page", "--param", help="Query parameter carrying the page index."),
    delay: float = typer.Option(
        settings.rate_limit_delay, "--delay", min=0.0, help="Minimum seconds between fetches."
    ),
    js: bool = typer.Option(False, "--js", help="Render pages in a headless browser first."),
    fmt: str = typer.Option("lines", "--format", help="Output format: lines | json | csv."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Scrape pages 1..PAGES of BASE_URL and concatenate the results in order."""
    _configure_logging(verbose)
    _check_format(fmt, output)
    engine = _build_engine(js)

    try:
        items = engine.scrape_paginated(base_url, param, pages, selector, delay_seconds=delay)
    except PaginationError as exc:
        typer.echo(f"[paginate] ✗ Page {exc.page} failed: {exc.__cause__}", err=True)
        if output is not None and exc.partial:
            try:
                _emit(exc.partial, fmt, output, "paginate")
            except ScrapeError as export_exc:
                typer.echo(f"[paginate] ✗ {export_exc}", err=True)
            else:
                typer.echo(
                    f"[paginate] Kept {len(exc.partial)} item(s) from pages 1-{exc.page - 1}"
                )
        raise typer.Exit(code=1)

    try:
        _emit(items, fmt, output, "paginate")
    except ScrapeError as exc:
        typer.echo(f"[paginate] ✗ {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
