"""Persist rendered pages and auxiliary artifacts into the output directory."""

from __future__ import annotations

import json
from html import escape
from pathlib import Path
from typing import Iterable, Sequence

from .config import DEFAULT_BASE_URL
from .models import Entry

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
SITEMAP_CHANGEFREQ = "daily"
SITEMAP_PRIORITY = "0.7"

SEARCH_INDEX_FILENAME = "search-index.json"
SITEMAP_FILENAME = "sitemap.xml"
ROBOTS_FILENAME = "robots.txt"
URLS_FILENAME = "urls.txt"


def build_search_index(entries: Iterable[Entry]) -> list[dict[str, object]]:
    """Project entries onto the public search index record shape."""
    return [
        {
            "id": entry.id,
            "name": entry.name,
            "description": entry.description or "",
            "category": entry.category or "",
            "link": entry.link,
            "tags": list(entry.tags or []),
            "slug": entry.page_slug,
        }
        for entry in entries
    ]


def render_sitemap(urls: Iterable[str], base_url: str) -> str:
    base = _normalize_base_url(base_url) or DEFAULT_BASE_URL
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<urlset xmlns="{SITEMAP_NAMESPACE}">',
    ]
    for path in urls:
        parts.append(
            f"  <url><loc>{escape(base + path)}</loc>"
            f"<changefreq>{SITEMAP_CHANGEFREQ}</changefreq>"
            f"<priority>{SITEMAP_PRIORITY}</priority></url>"
        )
    parts.append("</urlset>")
    return "\n".join(parts) + "\n"


def render_robots(base_url: str) -> str:
    base = _normalize_base_url(base_url) or DEFAULT_BASE_URL
    return f"User-agent: *\nAllow: /\nSitemap: {base}/{SITEMAP_FILENAME}\n"


def render_urls_txt(urls: Iterable[str], base_url: str | None) -> str:
    prefix = _normalize_base_url(base_url) or ""
    lines = [f"{prefix}{path}" for path in urls]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


class ArtifactWriter:
    """Write build artifacts below a single output root.

    Filesystem errors are not caught here; they propagate to the caller and abort
    the build.
    """

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir
        self.written: list[Path] = []

    def write_page(self, relative_path: str | Path, html: str) -> Path:
        return self._write_text(relative_path, html)

    def write_search_index(self, entries: Sequence[Entry]) -> Path:
        payload = json.dumps(build_search_index(entries), ensure_ascii=False, indent=2)
        return self._write_text(SEARCH_INDEX_FILENAME, payload + "\n")

    def write_sitemap(self, urls: Iterable[str], base_url: str) -> Path:
        return self._write_text(SITEMAP_FILENAME, render_sitemap(urls, base_url))

    def write_robots(self, base_url: str) -> Path:
        return self._write_text(ROBOTS_FILENAME, render_robots(base_url))

    def write_urls_txt(self, urls: Iterable[str], base_url: str | None) -> Path:
        return self._write_text(URLS_FILENAME, render_urls_txt(urls, base_url))

    def _write_text(self, relative_path: str | Path, content: str) -> Path:
        destination = self._output_dir / relative_path
        destination.parent.mkdir(parents=True, exist_ok=True)
        # Fixed newline so output bytes match across platforms.
        with destination.open("w", encoding="utf-8", newline="\n") as handle:
            handle.write(content)
        self.written.append(destination)
        return destination


def _normalize_base_url(base_url: str | None) -> str | None:
    if not base_url:
        return None
    text = base_url.strip()
    if not text:
        return None
    return text.rstrip("/")
