"""Partition entries into categories."""

from __future__ import annotations

from typing import Iterable

from .config import DEFAULT_CATEGORY_LABEL
from .models import Category, Entry


def group_by_category(
    entries: Iterable[Entry],
    default_label: str = DEFAULT_CATEGORY_LABEL,
) -> list[Category]:
    """Group entries by category in first-seen order.

    Entries without a category land in ``default_label``. Entry order inside each
    category follows the input order.
    """
    grouped: dict[str, Category] = {}
    for entry in entries:
        name = entry.category or default_label
        category = grouped.get(name)
        if category is None:
            category = grouped[name] = Category(name=name)
        category.entries.append(entry)
    return list(grouped.values())
