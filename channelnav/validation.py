"""Schema validation helpers for channel data files."""

from __future__ import annotations

import copy
import json
from collections import Counter
from functools import lru_cache
from importlib import resources
from typing import Any

from jsonschema import Draft202012Validator

SCHEMA_PACKAGE = "channelnav.schemas"
CHANNELS_SCHEMA_NAME = "channels.schema.json"


class EntryValidationError(ValueError):
    """Raised when channel data fails schema or uniqueness validation."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


def validate_entries(data: Any, *, require_category: bool = False, source: str = "<data>") -> None:
    """Validate a decoded channel payload against the canonical JSON schema.

    ``require_category`` tightens the schema to the contract expected from remote
    data sources, where every entry must carry a non-empty category.
    """
    validator = _get_validator(require_category)
    errors = sorted(validator.iter_errors(data), key=lambda err: list(err.path))
    if errors:
        first = errors[0]
        pointer = "/".join(str(elem) for elem in first.path)
        message = f"{source}: {first.message}"
        if pointer:
            message += f" (at {pointer})"
        raise EntryValidationError(message, path=pointer or None)

    duplicates = [key for key, count in Counter(item["id"] for item in data).items() if count > 1]
    if duplicates:
        raise EntryValidationError(
            f"{source}: duplicate entry id(s): {', '.join(sorted(duplicates))}",
        )


@lru_cache(maxsize=2)
def _get_validator(require_category: bool) -> Draft202012Validator:
    schema = _load_schema(CHANNELS_SCHEMA_NAME)
    if require_category:
        schema = copy.deepcopy(schema)
        items = schema["items"]
        items["required"] = [*items["required"], "category"]
        items["properties"]["category"] = {"type": "string", "minLength": 1}
    return Draft202012Validator(schema)


def _load_schema(name: str) -> dict[str, Any]:
    with resources.files(SCHEMA_PACKAGE).joinpath(name).open("r", encoding="utf-8") as handle:
        return json.load(handle)
