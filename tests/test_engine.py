"""Tests for the scrape engine — caching, pagination, pacing.

Mocking strategy:
- A ``FakeWeb`` serves canned HTML through an injected ``DocumentSource``
  and records every transport call, so cache hits can be verified by call
  count.
- Time is driven by ``FakeClock``; pacer sleeps advance it instead of
  blocking, so delays are asserted without wall-clock waits.
"""

from __future__ import annotations

import asyncio

import pytest

from scrapekit.cache import ScrapeCache, max_age
from scrapekit.engine import ScrapeEngine, page_url
from scrapekit.errors import (
    ExtractionError,
    FetchError,
    PaginationError,
    SelectorSyntaxError,
)
from scrapekit.models import Backend, FetchKey, RawDocument
from scrapekit.pacer import Pacer
from scrapekit.source import DocumentSource


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    async def async_sleep(self, seconds: float) -> None:
        self.sleep(seconds)


class FakeWeb:
    """Serves ``pages`` by URL and records (url, time) for every fetch."""

    def __init__(self, pages: dict[str, str], clock: FakeClock | None = None) -> None:
        self.pages = pages
        self.clock = clock or FakeClock()
        self.calls: list[tuple[str, float]] = []
        self.rendered: list[str] = []
        self.failures: dict[str, Exception] = {}

    def fetch(self, url: str) -> RawDocument:
        self.calls.append((url, self.clock()))
        if url in self.failures:
            raise self.failures[url]
        return RawDocument(url=url, html=self.pages[url], status_code=200)

    async def fetch_async(self, url: str) -> RawDocument:
        return self.fetch(url)

    def render(self, url: str) -> RawDocument:
        self.rendered.append(url)
        return RawDocument(
            url=url,
            html=self.pages[url].replace("raw", "rendered"),
            status_code=200,
            backend=Backend.RENDERED,
        )

    async def render_async(self, url: str) -> RawDocument:
        return self.render(url)

    def source(self) -> DocumentSource:
        return DocumentSource(
            fetch=self.fetch,
            fetch_async=self.fetch_async,
            render=self.render,
            render_async=self.render_async,
        )

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


_URL = "https://example.com/list"
_LIST_HTML = "<html><body><ul><li>raw one</li><li>raw two</li></ul></body></html>"


def _page_html(page: int) -> str:
    return f"<ul><li>p{page}-a</li><li>p{page}-b</li></ul>"


def _engine(web: FakeWeb, **kwargs) -> ScrapeEngine:
    clock = web.clock
    kwargs.setdefault(
        "pacer", Pacer(clock=clock, sleep=clock.sleep, async_sleep=clock.async_sleep)
    )
    return ScrapeEngine(source=web.source(), **kwargs)


@pytest.fixture()
def web() -> FakeWeb:
    return FakeWeb({_URL: _LIST_HTML})


# ---------------------------------------------------------------------------
# page_url
# ---------------------------------------------------------------------------

class TestPageUrl:
    def test_adds_query_param(self) -> None:
        assert page_url("https://example.com/items", "page", 3) == "https://example.com/items?page=3"

    def test_keeps_existing_query(self) -> None:
        url = page_url("https://example.com/items?sort=new", "p", 2)
        assert url == "https://example.com/items?sort=new&p=2"

    def test_replaces_existing_page_param(self) -> None:
        url = page_url("https://example.com/items?page=9", "page", 2)
        assert url == "https://example.com/items?page=2"

    def test_path_placeholder(self) -> None:
        url = page_url("https://example.com/items/{page}/", "page", 4)
        assert url == "https://example.com/items/4/"

    def test_invalid_base_url_raises_fetch_error(self) -> None:
        with pytest.raises(FetchError) as excinfo:
            page_url("http://[::1/", "page", 1)
        assert excinfo.value.url == "http://[::1/"


# ---------------------------------------------------------------------------
# scrape / scrape_async
# ---------------------------------------------------------------------------

class TestScrape:
    def test_extracts_items(self, web: FakeWeb) -> None:
        assert _engine(web).scrape(_URL, "li") == ["raw one", "raw two"]

    def test_second_call_is_cache_hit(self, web: FakeWeb) -> None:
        engine = _engine(web)
        first = engine.scrape(_URL, "li")
        second = engine.scrape(_URL, "li")

        assert second == first
        assert len(web.calls) == 1

    def test_different_selector_is_a_different_key(self, web: FakeWeb) -> None:
        engine = _engine(web)
        engine.scrape(_URL, "li")
        engine.scrape(_URL, "ul")
        assert len(web.calls) == 2

    def test_result_is_a_copy(self, web: FakeWeb) -> None:
        engine = _engine(web)
        engine.scrape(_URL, "li").append("tampered")
        engine.scrape(_URL, "li").clear()

        assert engine.scrape(_URL, "li") == ["raw one", "raw two"]

    def test_zero_matches_is_cached_empty_result(self, web: FakeWeb) -> None:
        engine = _engine(web)
        assert engine.scrape(_URL, "table td") == []
        assert engine.scrape(_URL, "table td") == []
        assert len(web.calls) == 1

    def test_malformed_selector_leaves_cache_untouched(self, web: FakeWeb) -> None:
        engine = _engine(web)
        with pytest.raises(SelectorSyntaxError) as excinfo:
            engine.scrape(_URL, "li[")

        assert isinstance(excinfo.value, ExtractionError)
        assert FetchKey(_URL, "li[") not in engine.cache
        assert len(engine.cache) == 0

    def test_fetch_error_propagates_and_nothing_is_cached(self, web: FakeWeb) -> None:
        web.failures[_URL] = FetchError("HTTP 503", url=_URL, status_code=503)
        engine = _engine(web)

        with pytest.raises(FetchError) as excinfo:
            engine.scrape(_URL, "li")

        assert excinfo.value.status_code == 503
        assert len(engine.cache) == 0

    def test_fetch_advances_pacer(self, web: FakeWeb) -> None:
        engine = _engine(web)
        assert engine.pacer.last_fetch is None
        engine.scrape(_URL, "li")
        assert engine.pacer.last_fetch == web.clock.now

    def test_stale_entry_is_refetched(self) -> None:
        clock = FakeClock()
        web = FakeWeb({_URL: _LIST_HTML}, clock=clock)
        engine = _engine(web, cache=ScrapeCache(freshness=max_age(60), clock=clock))

        engine.scrape(_URL, "li")
        clock.now += 30
        engine.scrape(_URL, "li")
        assert len(web.calls) == 1

        clock.now += 31
        engine.scrape(_URL, "li")
        assert len(web.calls) == 2

    async def test_async_matches_sync_contract(self, web: FakeWeb) -> None:
        engine = _engine(web)
        assert await engine.scrape_async(_URL, "li") == ["raw one", "raw two"]
        assert await engine.scrape_async(_URL, "li") == ["raw one", "raw two"]
        assert len(web.calls) == 1

    async def test_async_and_sync_share_the_cache(self, web: FakeWeb) -> None:
        engine = _engine(web)
        engine.scrape(_URL, "li")
        await engine.scrape_async(_URL, "li")
        assert len(web.calls) == 1

    async def test_cancelled_fetch_writes_nothing(self) -> None:
        started = asyncio.Event()

        async def hanging_fetch(url: str) -> RawDocument:
            started.set()
            await asyncio.Event().wait()
            raise AssertionError("unreachable")

        engine = ScrapeEngine(source=DocumentSource(fetch_async=hanging_fetch))
        task = asyncio.create_task(engine.scrape_async(_URL, "li"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(engine.cache) == 0


# ---------------------------------------------------------------------------
# Sharing and the JavaScript engine
# ---------------------------------------------------------------------------

class TestEngineIsolation:
    def test_engines_have_private_caches_by_default(self, web: FakeWeb) -> None:
        _engine(web).scrape(_URL, "li")
        _engine(web).scrape(_URL, "li")
        assert len(web.calls) == 2

    def test_injected_cache_is_shared(self, web: FakeWeb) -> None:
        cache = ScrapeCache()
        _engine(web, cache=cache).scrape(_URL, "li")
        assert _engine(web, cache=cache).scrape(_URL, "li") == ["raw one", "raw two"]
        assert len(web.calls) == 1

    def test_js_engine_renders(self, web: FakeWeb) -> None:
        engine = ScrapeEngine.with_js(source=web.source())

        assert engine.use_js is True
        assert engine.scrape(_URL, "li") == ["rendered one", "rendered two"]
        assert web.rendered == [_URL]
        assert web.calls == []

    def test_js_engine_does_not_see_plain_cache(self, web: FakeWeb) -> None:
        plain = _engine(web)
        plain.scrape(_URL, "li")
        js = ScrapeEngine.with_js(source=web.source())

        assert js.scrape(_URL, "li") == ["rendered one", "rendered two"]
        assert js.cache is not plain.cache

    async def test_js_engine_async(self, web: FakeWeb) -> None:
        engine = ScrapeEngine.with_js(source=web.source())
        assert await engine.scrape_async(_URL, "li") == ["rendered one", "rendered two"]
        assert web.rendered == [_URL]


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

_BASE = "https://example.com/items"


@pytest.fixture()
def paged_web() -> FakeWeb:
    return FakeWeb({f"{_BASE}?page={n}": _page_html(n) for n in range(1, 6)})


class TestScrapePaginated:
    def test_fetches_pages_in_order_and_concatenates(self, paged_web: FakeWeb) -> None:
        items = _engine(paged_web).scrape_paginated(_BASE, "page", 3, "li")

        assert paged_web.urls == [f"{_BASE}?page=1", f"{_BASE}?page=2", f"{_BASE}?page=3"]
        assert items == ["p1-a", "p1-b", "p2-a", "p2-b", "p3-a", "p3-b"]

    def test_zero_pages_is_empty(self, paged_web: FakeWeb) -> None:
        assert _engine(paged_web).scrape_paginated(_BASE, "page", 0, "li") == []
        assert paged_web.calls == []

    def test_negative_page_count_rejected(self, paged_web: FakeWeb) -> None:
        with pytest.raises(ValueError):
            _engine(paged_web).scrape_paginated(_BASE, "page", -1, "li")

    def test_failing_page_aborts_with_index_and_partial(self, paged_web: FakeWeb) -> None:
        cause = FetchError("HTTP 500", url=f"{_BASE}?page=3", status_code=500)
        paged_web.failures[f"{_BASE}?page=3"] = cause

        with pytest.raises(PaginationError) as excinfo:
            _engine(paged_web).scrape_paginated(_BASE, "page", 5, "li")

        err = excinfo.value
        assert err.page == 3
        assert err.partial == ["p1-a", "p1-b", "p2-a", "p2-b"]
        assert err.__cause__ is cause
        assert paged_web.urls == [f"{_BASE}?page=1", f"{_BASE}?page=2", f"{_BASE}?page=3"]

    def test_bad_selector_reports_first_page(self, paged_web: FakeWeb) -> None:
        with pytest.raises(PaginationError) as excinfo:
            _engine(paged_web).scrape_paginated(_BASE, "page", 5, "li[")

        assert excinfo.value.page == 1
        assert excinfo.value.partial == []
        assert isinstance(excinfo.value.__cause__, SelectorSyntaxError)

    def test_cached_pages_are_not_refetched(self, paged_web: FakeWeb) -> None:
        engine = _engine(paged_web)
        engine.scrape_paginated(_BASE, "page", 2, "li")
        engine.scrape_paginated(_BASE, "page", 3, "li")
        assert len(paged_web.calls) == 3

    def test_delay_spaces_page_fetches(self, paged_web: FakeWeb) -> None:
        _engine(paged_web).scrape_paginated(_BASE, "page", 3, "li", delay_seconds=2.0)

        times = [t for _, t in paged_web.calls]
        assert times[1] - times[0] >= 2.0
        assert times[2] - times[1] >= 2.0

    def test_invalid_base_url_fails_on_page_one(self, paged_web: FakeWeb) -> None:
        with pytest.raises(PaginationError) as excinfo:
            _engine(paged_web).scrape_paginated("http://[::1/", "page", 2, "li")

        assert excinfo.value.page == 1
        assert excinfo.value.partial == []
        assert isinstance(excinfo.value.__cause__, FetchError)
        assert paged_web.calls == []

    async def test_async_invalid_base_url_fails_on_page_one(self, paged_web: FakeWeb) -> None:
        with pytest.raises(PaginationError) as excinfo:
            await _engine(paged_web).scrape_paginated_async("http://[::1/", "page", 2, "li")

        assert excinfo.value.page == 1
        assert isinstance(excinfo.value.__cause__, FetchError)
        assert paged_web.calls == []

    async def test_async_pagination_keeps_order(self, paged_web: FakeWeb) -> None:
        items = await _engine(paged_web).scrape_paginated_async(_BASE, "page", 2, "li")

        assert paged_web.urls == [f"{_BASE}?page=1", f"{_BASE}?page=2"]
        assert items == ["p1-a", "p1-b", "p2-a", "p2-b"]

    async def test_async_pagination_failure(self, paged_web: FakeWeb) -> None:
        paged_web.failures[f"{_BASE}?page=2"] = FetchError("boom", url=f"{_BASE}?page=2")

        with pytest.raises(PaginationError) as excinfo:
            await _engine(paged_web).scrape_paginated_async(_BASE, "page", 4, "li")

        assert excinfo.value.page == 2
        assert excinfo.value.partial == ["p1-a", "p1-b"]
        assert len(paged_web.calls) == 2


# ---------------------------------------------------------------------------
# scrape_with_delay
# ---------------------------------------------------------------------------

class TestScrapeWithDelay:
    async def test_back_to_back_fetches_are_spaced(self, paged_web: FakeWeb) -> None:
        engine = _engine(paged_web)
        await engine.scrape_with_delay(f"{_BASE}?page=1", "li", 1.5)
        await engine.scrape_with_delay(f"{_BASE}?page=2", "li", 1.5)

        (_, first), (_, second) = paged_web.calls
        assert second - first >= 1.5
        assert paged_web.clock.sleeps == [1.5]

    async def test_first_fetch_does_not_wait(self, web: FakeWeb) -> None:
        await _engine(web).scrape_with_delay(_URL, "li", 5.0)
        assert web.clock.sleeps == []

    async def test_only_remaining_time_is_waited(self, paged_web: FakeWeb) -> None:
        engine = _engine(paged_web)
        await engine.scrape_with_delay(f"{_BASE}?page=1", "li", 3.0)
        paged_web.clock.now += 2.0
        await engine.scrape_with_delay(f"{_BASE}?page=2", "li", 3.0)

        assert paged_web.clock.sleeps == [pytest.approx(1.0)]

    async def test_cache_hit_does_not_wait(self, web: FakeWeb) -> None:
        engine = _engine(web)
        await engine.scrape_with_delay(_URL, "li", 5.0)
        assert await engine.scrape_with_delay(_URL, "li", 5.0) == ["raw one", "raw two"]

        assert web.clock.sleeps == []
        assert len(web.calls) == 1

    async def test_delay_is_per_engine(self, paged_web: FakeWeb) -> None:
        await _engine(paged_web).scrape_with_delay(f"{_BASE}?page=1", "li", 5.0)
        await _engine(paged_web).scrape_with_delay(f"{_BASE}?page=2", "li", 5.0)
        assert paged_web.clock.sleeps == []

    async def test_shared_pacer_spaces_engines(self, paged_web: FakeWeb) -> None:
        clock = paged_web.clock
        pacer = Pacer(clock=clock, sleep=clock.sleep, async_sleep=clock.async_sleep)
        await _engine(paged_web, pacer=pacer).scrape_with_delay(f"{_BASE}?page=1", "li", 5.0)
        await _engine(paged_web, pacer=pacer).scrape_with_delay(f"{_BASE}?page=2", "li", 5.0)
        assert clock.sleeps == [5.0]
