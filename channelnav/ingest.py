"""Load channel entries from the local data file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from .models import Entry
from .validation import EntryValidationError, validate_entries

logger = logging.getLogger(__name__)


class DataSourceError(RuntimeError):
    """Raised when the channel data file is missing or cannot be decoded."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


def load_entries(path: Path) -> list[Entry]:
    """Read, validate, and parse every entry in ``path`` preserving file order."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise DataSourceError(f"Data file not found: {path}", path=path) from exc
    except UnicodeDecodeError as exc:
        raise DataSourceError(f"Data file {path} is not valid UTF-8: {exc}", path=path) from exc
    except OSError as exc:
        raise DataSourceError(f"Unable to read data file {path}: {exc}", path=path) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DataSourceError(f"Data file {path} is not valid JSON: {exc}", path=path) from exc

    validate_entries(data, source=str(path))

    entries: list[Entry] = []
    for index, item in enumerate(data):
        try:
            entries.append(Entry.model_validate(item))
        except ValidationError as exc:
            raise EntryValidationError(f"{path}: entry {index} is invalid: {exc}", path=str(index)) from exc

    logger.debug("Loaded %d entry(ies) from %s", len(entries), path)
    return entries
