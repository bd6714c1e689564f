"""Typed representations of directory entries and derived build values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional
from urllib.parse import quote, unquote

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Path separators never reach a page file name.
_SEPARATOR_TABLE = str.maketrans({"/": "_", "\\": "_"})

# Characters left unescaped by JavaScript's encodeURIComponent besides alphanumerics and "-_.".
_URI_COMPONENT_SAFE = "!~*'()"


def encode_path_segment(value: str) -> str:
    """Percent-encode a single URL path segment the way ``encodeURIComponent`` does."""
    return quote(value, safe=_URI_COMPONENT_SAFE)


class Entry(BaseModel):
    """One directory listing loaded from the channel data file."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1, description="Unique identifier, used verbatim as the page slug.")
    name: str = Field(min_length=1, description="Display title.")
    link: str = Field(min_length=1, description="External resource the entry points to.")
    category: Optional[str] = Field(default=None, description="Grouping label.")
    description: str = Field(default="", description="Free-form summary.")
    tags: list[str] = Field(default_factory=list, description="Free-form tags.")
    slug: Optional[str] = Field(default=None, description="Derived output slug, set during a build.")

    @field_validator("description", mode="before")
    def _default_description(cls, value: Any) -> str:
        return "" if value is None else value

    @field_validator("tags", mode="before")
    def _default_tags(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("category", mode="before")
    def _empty_category(cls, value: Any) -> Any:
        return None if value == "" else value

    @property
    def page_slug(self) -> str:
        return self.slug or self.id

    def with_slug(self) -> "Entry":
        """Return a copy annotated with the slug used for its output page."""
        return self.model_copy(update={"slug": self.id})


@dataclass(slots=True)
class Category:
    """A named group of entries in input order."""

    name: str
    entries: list[Entry] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.entries)


class UrlSet:
    """Ordered, de-duplicated collection of site-relative page paths."""

    __slots__ = ("_paths", "_seen")

    def __init__(self, paths: Iterable[str] = ()) -> None:
        self._paths: list[str] = []
        self._seen: set[str] = set()
        for path in paths:
            self.add(path)

    def add(self, path: str) -> bool:
        """Append ``path`` unless already present; return whether it was added."""
        if path in self._seen:
            return False
        self._seen.add(path)
        self._paths.append(path)
        return True

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: object) -> bool:
        return path in self._seen

    def __repr__(self) -> str:
        return f"UrlSet({self._paths!r})"


def page_stem(value: str) -> str:
    return value.translate(_SEPARATOR_TABLE)


def category_path(name: str) -> str:
    return f"/category/{encode_path_segment(page_stem(name))}.html"


def channel_path(slug: str) -> str:
    return f"/channel/{encode_path_segment(page_stem(slug))}.html"


def page_file(path: str) -> str:
    """Map a site path such as ``/category/Tech%20News.html`` to its file below the output root.

    Static hosts decode the request path before the lookup, so files carry the decoded name.
    """
    relative = unquote(path.lstrip("/"))
    return relative or "index.html"
