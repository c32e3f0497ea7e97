"""Selector-based extraction: turns a document into an ordered list of texts."""

from __future__ import annotations

import logging

import soupsieve
from bs4 import BeautifulSoup

from scrapekit.errors import ExtractionError, SelectorSyntaxError

logger = logging.getLogger(__name__)


def _parse(document: str | bytes, selector: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(document, "html.parser")
    except Exception as exc:  # noqa: BLE001 - html.parser errors have no common base
        raise ExtractionError(f"could not parse document: {exc}", selector=selector) from exc


def extract(document: str | bytes, selector: str) -> list[str]:
    """Return the text of every element in *document* matching *selector*.

    Matches are returned in document order, each flattened with
    ``get_text(separator=" ", strip=True)``.  A well-formed selector that
    matches nothing yields ``[]``.

    Raises:
        SelectorSyntaxError: If *selector* is empty or malformed.
        ExtractionError: If *document* cannot be parsed.
    """
    if not selector or not selector.strip():
        raise SelectorSyntaxError("selector is empty", selector=selector)

    soup = _parse(document, selector)
    try:
        matches = soup.select(selector)
    except soupsieve.SelectorSyntaxError as exc:
        raise SelectorSyntaxError(f"invalid selector {selector!r}: {exc}", selector=selector) from exc

    items = [el.get_text(separator=" ", strip=True) for el in matches]
    logger.debug("extract: %d match(es) for %r", len(items), selector)
    return items
