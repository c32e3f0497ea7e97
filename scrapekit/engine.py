"""Scrape engine: cache check, fetch, extract, store.

One engine instance owns a cache and a pacer (unless shared ones are
injected) and a :class:`DocumentSource`.  The pipeline is the same for the
blocking and the coroutine entry points; only the fetch step differs:

    cached?  ──yes──> copy of cached items
       │no
    pacer wait ─> get_document ─> extract ─> cache.put ─> items

Extraction and cache access are synchronous, so a coroutine only suspends
inside the transport call.  The cache is written after the document is in
hand, so a cancelled or failed fetch never leaves an entry behind.
"""

from __future__ import annotations

import logging

import httpx

from scrapekit.cache import ScrapeCache
from scrapekit.errors import FetchError, PaginationError, ScrapeError
from scrapekit.extractor import extract
from scrapekit.models import CacheEntry, FetchKey, RawDocument
from scrapekit.pacer import Pacer
from scrapekit.source import DocumentSource

logger = logging.getLogger(__name__)

_PAGE_PLACEHOLDER = "{page}"


def page_url(base_url: str, page_param: str, page: int) -> str:
    """Build the URL of page *page*.

    A ``{page}`` placeholder in *base_url* is substituted (path-based
    pagination, e.g. ``https://example.com/list/{page}``).  Otherwise
    ``page_param=page`` is set in the query string, keeping any existing
    parameters.

    Raises:
        FetchError: If *base_url* is not a valid URL.
    """
    if _PAGE_PLACEHOLDER in base_url:
        return base_url.replace(_PAGE_PLACEHOLDER, str(page))
    try:
        return str(httpx.URL(base_url).copy_set_param(page_param, str(page)))
    except httpx.InvalidURL as exc:
        raise FetchError(f"invalid URL {base_url!r}: {exc}", url=base_url) from exc


class ScrapeEngine:
    """Extracts selector matches from pages, with caching and pacing.

    Args:
        cache: Result cache; a private :class:`ScrapeCache` by default.
        pacer: Fetch pacer; a private :class:`Pacer` by default.
        source: Document retrieval; the real HTTP / browser backends by default.
        use_js: Load pages through the headless browser instead of plain HTTP.
    """

    def __init__(
        self,
        cache: ScrapeCache | None = None,
        pacer: Pacer | None = None,
        source: DocumentSource | None = None,
        *,
        use_js: bool = False,
    ) -> None:
        self.cache = cache if cache is not None else ScrapeCache()
        self.pacer = pacer if pacer is not None else Pacer()
        self.source = source if source is not None else DocumentSource()
        self.use_js = use_js

    @classmethod
    def with_js(
        cls,
        cache: ScrapeCache | None = None,
        pacer: Pacer | None = None,
        source: DocumentSource | None = None,
    ) -> ScrapeEngine:
        """Engine that renders pages in a headless browser before extracting.

        Rendered and raw HTML of one URL are different documents, so this
        engine gets its own cache and pacer unless they are passed in.
        """
        return cls(cache=cache, pacer=pacer, source=source, use_js=True)

    # ------------------------------------------------------------------
    # Shared pipeline steps
    # ------------------------------------------------------------------

    def _cached(self, key: FetchKey) -> list[str] | None:
        entry = self.cache.get(key)
        if entry is None:
            return None
        logger.info("scrape: cache hit for %s (%r)", key.url, key.selector)
        return list(entry.items)

    def _complete(self, key: FetchKey, document: RawDocument) -> list[str]:
        items = extract(document.html, key.selector)
        self.cache.put(key, CacheEntry(items=tuple(items), created_at=self.cache.now()))
        logger.info("scrape: %d item(s) from %s", len(items), key.url)
        return items

    # ------------------------------------------------------------------
    # Single page
    # ------------------------------------------------------------------

    def scrape(self, url: str, selector: str) -> list[str]:
        """Return the text of every element of *url* matching *selector*.

        Served from the cache when a fresh entry exists; otherwise fetched,
        extracted and cached.

        Raises:
            FetchError: The transport failed.
            RendererError: The headless browser failed (``use_js`` engines).
            ExtractionError: The document or selector could not be processed.
        """
        return self._scrape_paced(url, selector, delay_seconds=0.0)

    async def scrape_async(self, url: str, selector: str) -> list[str]:
        """Coroutine version of :meth:`scrape`."""
        return await self._scrape_async(url, selector, delay_seconds=0.0)

    async def scrape_with_delay(self, url: str, selector: str, delay_seconds: float) -> list[str]:
        """As :meth:`scrape_async`, keeping fetches *delay_seconds* apart.

        The wait is measured from this engine's previous fetch and only
        happens when the page actually has to be fetched.
        """
        return await self._scrape_async(url, selector, delay_seconds=delay_seconds)

    async def _scrape_async(self, url: str, selector: str, delay_seconds: float) -> list[str]:
        key = FetchKey(url, selector)
        cached = self._cached(key)
        if cached is not None:
            return cached
        await self.pacer.wait_if_needed_async(delay_seconds)
        document = await self.source.get_document_async(url, use_js=self.use_js)
        return self._complete(key, document)

    def _scrape_paced(self, url: str, selector: str, delay_seconds: float) -> list[str]:
        key = FetchKey(url, selector)
        cached = self._cached(key)
        if cached is not None:
            return cached
        self.pacer.wait_if_needed(delay_seconds)
        document = self.source.get_document(url, use_js=self.use_js)
        return self._complete(key, document)

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def scrape_paginated(
        self,
        base_url: str,
        page_param: str,
        page_count: int,
        selector: str,
        *,
        delay_seconds: float = 0.0,
    ) -> list[str]:
        """Scrape pages ``1..page_count`` in order and concatenate their items.

        Pages are fetched one after the other; with *delay_seconds* set the
        fetches are kept at least that far apart.

        Raises:
            PaginationError: A page failed.  ``page`` is its index,
                ``partial`` holds the items of the pages before it and the
                underlying error is chained as ``__cause__``.
        """
        _check_page_count(page_count)
        results: list[str] = []
        for page in range(1, page_count + 1):
            try:
                url = page_url(base_url, page_param, page)
                logger.info("paginate: page %d/%d %s", page, page_count, url)
                results.extend(self._scrape_paced(url, selector, delay_seconds))
            except ScrapeError as exc:
                raise PaginationError(page, results, exc) from exc
        return results

    async def scrape_paginated_async(
        self,
        base_url: str,
        page_param: str,
        page_count: int,
        selector: str,
        *,
        delay_seconds: float = 0.0,
    ) -> list[str]:
        """Coroutine version of :meth:`scrape_paginated`; pages stay in order."""
        _check_page_count(page_count)
        results: list[str] = []
        for page in range(1, page_count + 1):
            try:
                url = page_url(base_url, page_param, page)
                logger.info("paginate: page %d/%d %s", page, page_count, url)
                results.extend(await self._scrape_async(url, selector, delay_seconds))
            except ScrapeError as exc:
                raise PaginationError(page, results, exc) from exc
        return results


def _check_page_count(page_count: int) -> None:
    if page_count < 0:
        raise ValueError(f"page_count must be >= 0, got {page_count}")
