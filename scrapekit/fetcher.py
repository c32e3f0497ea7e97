"""HTTP transport for the plain (non-rendered) document path."""

from __future__ import annotations

import logging
import re

import httpx

from scrapekit.config import settings
from scrapekit.errors import FetchError
from scrapekit.models import Backend, RawDocument

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SPA / JS-rendered page detection heuristics
# ---------------------------------------------------------------------------
_SPA_PATTERNS = [
    re.compile(r'<div[^>]+id=["\'](?:root|app)["\']', re.IGNORECASE),
    re.compile(r"window\.__NEXT_DATA__", re.IGNORECASE),
    re.compile(r"ng-version=", re.IGNORECASE),
    re.compile(r"data-reactroot", re.IGNORECASE),
]


def _is_spa(html: str) -> bool:
    """Return ``True`` if *html* looks like a JavaScript SPA that needs rendering."""
    for pattern in _SPA_PATTERNS:
        if pattern.search(html):
            return True
    # Very little visible text relative to total HTML size.  <script> and
    # <style> bodies are not visible text.
    no_scripts = re.sub(
        r"<(script|style)[^>]*>.*?</(script|style)>", "", html, flags=re.IGNORECASE | re.DOTALL
    )
    stripped = re.sub(r"<[^>]+>", "", no_scripts).strip()
    return len(html) > 2000 and len(stripped) < 200


def _client_options() -> dict:
    return {
        "headers": {"User-Agent": settings.user_agent},
        "timeout": settings.request_timeout,
        "follow_redirects": True,
    }


def _to_document(url: str, response: httpx.Response) -> RawDocument:
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(
            f"HTTP {response.status_code} for {url}",
            url=url,
            status_code=response.status_code,
        ) from exc

    html = response.text
    if _is_spa(html):
        logger.warning(
            "fetch: %s looks JavaScript-rendered; a rendering engine may extract more", url
        )
    return RawDocument(
        url=str(response.url),
        html=html,
        status_code=response.status_code,
        backend=Backend.HTTP,
    )


def fetch_document(url: str, client: httpx.Client | None = None) -> RawDocument:
    """Fetch *url* over HTTP(S) and return a :class:`RawDocument`.

    Redirects are followed and ``settings.request_timeout`` applies.  Pass
    *client* to reuse a connection pool; otherwise a short-lived client is
    opened for this call.

    Raises:
        FetchError: On network errors, timeouts and 4xx/5xx responses.
    """
    logger.info("fetch: GET %s", url)
    try:
        if client is not None:
            response = client.get(url)
        else:
            with httpx.Client(**_client_options()) as own_client:
                response = own_client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(f"request to {url} failed: {exc}", url=url) from exc
    return _to_document(url, response)


async def fetch_document_async(
    url: str, client: httpx.AsyncClient | None = None
) -> RawDocument:
    """Async counterpart of :func:`fetch_document`."""
    logger.info("fetch: GET %s", url)
    try:
        if client is not None:
            response = await client.get(url)
        else:
            async with httpx.AsyncClient(**_client_options()) as own_client:
                response = await own_client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(f"request to {url} failed: {exc}", url=url) from exc
    return _to_document(url, response)
