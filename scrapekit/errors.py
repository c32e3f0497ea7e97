"""Exception hierarchy for the scrape pipeline.

Every failure raised by scrapekit derives from :class:`ScrapeError`, so a
caller can catch everything at once or branch on the concrete kind:

- :class:`FetchError` — the HTTP transport failed (DNS, connection,
  timeout, non-2xx status).
- :class:`RendererError` — the headless browser failed; ``kind`` tells a
  transport failure from a render-engine failure.
- :class:`ExtractionError` / :class:`SelectorSyntaxError` — the document
  or the selector could not be processed.
- :class:`PaginationError` — one page of a paginated run failed.
- :class:`ExportError` — an export destination could not be written.
"""

from __future__ import annotations

from enum import Enum


class ScrapeError(Exception):
    """Base class for all scrapekit failures."""


class RendererErrorKind(str, Enum):
    TRANSPORT = "transport"
    RENDER = "render"


class RendererError(ScrapeError):
    """A document could not be obtained from its backend."""

    def __init__(self, message: str, *, url: str, kind: RendererErrorKind) -> None:
        super().__init__(message)
        self.url = url
        self.kind = kind


class FetchError(RendererError):
    """Transport-level failure: network error, timeout or bad HTTP status."""

    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        super().__init__(message, url=url, kind=RendererErrorKind.TRANSPORT)
        self.status_code = status_code


class ExtractionError(ScrapeError):
    """The document could not be parsed or the selector could not be applied."""

    def __init__(self, message: str, *, selector: str) -> None:
        super().__init__(message)
        self.selector = selector


class SelectorSyntaxError(ExtractionError):
    """The selector is malformed.

    A well-formed selector that matches nothing is *not* an error.
    """


class PaginationError(ScrapeError):
    """A page of a paginated run failed.

    Attributes:
        page: 1-based index of the failing page.
        partial: Items collected from the pages before ``page``.
    """

    def __init__(self, page: int, partial: list[str], cause: Exception) -> None:
        super().__init__(f"page {page} failed: {cause}")
        self.page = page
        self.partial = partial


class ExportError(ScrapeError, OSError):
    """An export destination could not be written."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path
