"""Data models for the scrape pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Backend(str, Enum):
    """Where a document comes from: a plain HTTP fetch or a headless browser."""

    HTTP = "http"
    RENDERED = "rendered"

    @classmethod
    def for_js(cls, use_js: bool) -> Backend:
        return cls.RENDERED if use_js else cls.HTTP


@dataclass(frozen=True)
class FetchKey:
    """Cache identity of one extraction: the page URL plus the selector."""

    url: str
    selector: str


@dataclass(frozen=True)
class CacheEntry:
    """Extracted items for a :class:`FetchKey` and when they were stored."""

    items: tuple[str, ...]
    created_at: float


@dataclass
class RawDocument:
    """A retrieved document, whichever backend produced it."""

    url: str
    html: str
    status_code: int
    backend: Backend = Backend.HTTP
