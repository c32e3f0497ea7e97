"""Chooses between plain HTTP and headless rendering behind one call."""

from __future__ import annotations

from typing import Awaitable, Callable

from scrapekit.fetcher import fetch_document, fetch_document_async
from scrapekit.models import Backend, RawDocument
from scrapekit.renderer import render_document, render_document_async

SyncLoader = Callable[[str], RawDocument]
AsyncLoader = Callable[[str], Awaitable[RawDocument]]


class DocumentSource:
    """Uniform "get document" operation over the two backends.

    The four loaders default to the httpx transport and the Playwright
    renderer; any of them can be replaced, e.g. with a fake in tests.
    Failures from a loader propagate unchanged (``FetchError`` /
    ``RendererError``).
    """

    def __init__(
        self,
        fetch: SyncLoader = fetch_document,
        fetch_async: AsyncLoader = fetch_document_async,
        render: SyncLoader = render_document,
        render_async: AsyncLoader = render_document_async,
    ) -> None:
        self._sync: dict[Backend, SyncLoader] = {
            Backend.HTTP: fetch,
            Backend.RENDERED: render,
        }
        self._async: dict[Backend, AsyncLoader] = {
            Backend.HTTP: fetch_async,
            Backend.RENDERED: render_async,
        }

    def get_document(self, url: str, use_js: bool = False) -> RawDocument:
        return self._sync[Backend.for_js(use_js)](url)

    async def get_document_async(self, url: str, use_js: bool = False) -> RawDocument:
        return await self._async[Backend.for_js(use_js)](url)
