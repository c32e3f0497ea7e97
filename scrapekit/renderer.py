"""Headless-browser rendering for JavaScript-driven pages.

Pages are loaded in Playwright's Chromium, scripts are allowed to run until
``settings.render_wait_until`` is reached, and the resulting DOM is returned
serialised as HTML.  Playwright is imported lazily, inside the functions
that need it, so importing scrapekit for the plain HTTP path never loads
the browser machinery.
"""

from __future__ import annotations

import logging

from scrapekit.config import settings
from scrapekit.errors import RendererError, RendererErrorKind
from scrapekit.models import Backend, RawDocument

logger = logging.getLogger(__name__)

# Chromium network failures surface as "net::ERR_..." in the error message.
_NETWORK_ERROR_MARKER = "net::ERR_"


def _to_renderer_error(url: str, exc: Exception) -> RendererError:
    """Translate a Playwright failure into a :class:`RendererError`.

    Navigation timeouts and script failures are render-engine failures;
    Chromium network errors are transport failures.
    """
    from playwright.sync_api import TimeoutError as PlaywrightTimeoutError  # noqa: PLC0415

    if isinstance(exc, PlaywrightTimeoutError):
        return RendererError(
            f"rendering {url} timed out: {exc.message}", url=url, kind=RendererErrorKind.RENDER
        )
    if _NETWORK_ERROR_MARKER in exc.message:
        return RendererError(
            f"could not load {url}: {exc.message}", url=url, kind=RendererErrorKind.TRANSPORT
        )
    return RendererError(
        f"rendering {url} failed: {exc.message}", url=url, kind=RendererErrorKind.RENDER
    )


def _timeout_ms() -> float:
    return settings.request_timeout * 1000


def render_document(url: str) -> RawDocument:
    """Render *url* with a headless Chromium browser and return its HTML.

    Raises:
        RendererError: On navigation timeouts, network errors or script failures.
    """
    from playwright.sync_api import Error as PlaywrightError  # noqa: PLC0415
    from playwright.sync_api import sync_playwright  # noqa: PLC0415

    logger.info("render: loading %s", url)
    try:
        with sync_playwright() as pw:
            browser = pw.chromium.launch(headless=True)
            try:
                page = browser.new_page()
                response = page.goto(
                    url, timeout=_timeout_ms(), wait_until=settings.render_wait_until
                )
                html = page.content()
                final_url = page.url
            finally:
                browser.close()
    except PlaywrightError as exc:
        raise _to_renderer_error(url, exc) from exc

    status = response.status if response is not None else 200
    return RawDocument(url=final_url, html=html, status_code=status, backend=Backend.RENDERED)


async def render_document_async(url: str) -> RawDocument:
    """Async counterpart of :func:`render_document`."""
    from playwright.async_api import Error as PlaywrightError  # noqa: PLC0415
    from playwright.async_api import async_playwright  # noqa: PLC0415

    logger.info("render: loading %s", url)
    try:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=True)
            try:
                page = await browser.new_page()
                response = await page.goto(
                    url, timeout=_timeout_ms(), wait_until=settings.render_wait_until
                )
                html = await page.content()
                final_url = page.url
            finally:
                await browser.close()
    except PlaywrightError as exc:
        raise _to_renderer_error(url, exc) from exc

    status = response.status if response is not None else 200
    return RawDocument(url=final_url, html=html, status_code=status, backend=Backend.RENDERED)
