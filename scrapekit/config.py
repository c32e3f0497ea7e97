"""Centralised settings for scrapekit.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _optional_float(name: str) -> float | None:
    raw = os.environ.get(name, "").strip()
    return float(raw) if raw else None


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "SCRAPE_USER_AGENT",
            "Mozilla/5.0 (compatible; scrapekit/1.0; +https://github.com/scrapekit)",
        )
    )

    # ------------------------------------------------------------------
    # Headless rendering
    # ------------------------------------------------------------------
    render_wait_until: str = field(
        default_factory=lambda: os.environ.get("RENDER_WAIT_UNTIL", "networkidle")
    )

    # ------------------------------------------------------------------
    # Pacing / caching
    # ------------------------------------------------------------------
    rate_limit_delay: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_DELAY", "1.0"))
    )
    cache_max_age: float | None = field(
        default_factory=lambda: _optional_float("CACHE_MAX_AGE")
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "WARNING").upper()
    )


# Module-level singleton — import this everywhere:
#   from scrapekit.config import settings
settings = Settings()
