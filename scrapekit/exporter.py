"""Export extracted items as JSON text or a CSV file."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable

from scrapekit.errors import ExportError


def to_json(items: Iterable[str]) -> str:
    """Return *items* as a compact JSON array, e.g. ``["a","b"]``."""
    return json.dumps(list(items), ensure_ascii=False, separators=(",", ":"))


def to_csv(items: Iterable[str], destination: str | Path) -> None:
    """Write *items* to *destination*, one value per row.

    Raises:
        ExportError: If *destination* cannot be written.
    """
    path = Path(destination)
    try:
        with path.open("w", encoding="utf-8", newline="") as fh:
            writer = csv.writer(fh, lineterminator="\n")
            for item in items:
                writer.writerow([item])
    except OSError as exc:
        raise ExportError(f"cannot write {path}: {exc}", path=str(path)) from exc
