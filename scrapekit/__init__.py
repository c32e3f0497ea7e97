"""scrapekit — selector-based web extraction with caching and pacing."""

from scrapekit.cache import ScrapeCache, max_age
from scrapekit.engine import ScrapeEngine, page_url
from scrapekit.errors import (
    ExportError,
    ExtractionError,
    FetchError,
    PaginationError,
    RendererError,
    RendererErrorKind,
    ScrapeError,
    SelectorSyntaxError,
)
from scrapekit.exporter import to_csv, to_json
from scrapekit.extractor import extract
from scrapekit.models import Backend, CacheEntry, FetchKey, RawDocument
from scrapekit.pacer import Pacer
from scrapekit.source import DocumentSource

__all__ = [
    "Backend",
    "CacheEntry",
    "DocumentSource",
    "ExportError",
    "ExtractionError",
    "FetchError",
    "FetchKey",
    "Pacer",
    "PaginationError",
    "RawDocument",
    "RendererError",
    "RendererErrorKind",
    "ScrapeCache",
    "ScrapeEngine",
    "ScrapeError",
    "SelectorSyntaxError",
    "extract",
    "max_age",
    "page_url",
    "to_csv",
    "to_json",
]
