"""Render home, category, and channel pages through the active theme."""

from __future__ import annotations

from typing import Any, Sequence

from markupsafe import Markup

from .config import DEFAULT_CATEGORY_LABEL, Config, SiteConfig
from .models import Category, Entry, category_path, channel_path
from .themes import DEFAULT_THEME_NAME, ThemeError, ThemeLoader

HOME_TITLE = "Channel Directory"


def build_theme_loader(config: Config) -> ThemeLoader:
    """Construct the theme loader configured for ``config``."""
    try:
        return ThemeLoader(
            themes_root=config.themes_root,
            active_theme=config.theme_name,
            fallback_theme=DEFAULT_THEME_NAME,
        )
    except ThemeError as exc:
        raise ThemeError(f"Unable to load theme '{config.theme_name}': {exc}") from exc


def make_root_prefix(depth: int) -> str:
    return "./" if depth == 0 else "../" * depth


def make_href(path: str, *, depth: int) -> str:
    """Return a link to a site-root path that is relative to the rendering page."""
    if path.startswith(("http://", "https://", "//")):
        return path
    return f"{make_root_prefix(depth)}{path.lstrip('/')}"


class PageRenderer:
    """Turn categories and entries into complete HTML documents.

    Every ``render_*`` method is deterministic: the same inputs always produce the
    same string, and absent optional entry fields render as empty values.
    """

    def __init__(
        self,
        theme: ThemeLoader,
        site: SiteConfig | None = None,
        *,
        default_category: str = DEFAULT_CATEGORY_LABEL,
    ) -> None:
        self._theme = theme
        self._site = site or SiteConfig()
        self._default_category = default_category

    @classmethod
    def from_config(cls, config: Config) -> "PageRenderer":
        return cls(
            build_theme_loader(config),
            config.site,
            default_category=config.default_category,
        )

    def render_home(self, categories: Sequence[Category]) -> str:
        depth = 0
        cards = [
            {
                "name": category.name,
                "count": category.count,
                "href": make_href(category_path(category.name), depth=depth),
                "entries": [self._entry_link(entry, depth=depth) for entry in category.entries],
            }
            for category in categories
        ]
        body = self._theme.render_page("index", self._context(depth, categories=cards))
        return self.render_layout(self._site.title or HOME_TITLE, body, depth=depth)

    def render_category(self, name: str, entries: Sequence[Entry]) -> str:
        depth = 1
        items = [self._entry_link(entry, depth=depth) for entry in entries]
        body = self._theme.render_page("category", self._context(depth, name=name, entries=items))
        return self.render_layout(f"Category: {name}", body, depth=depth)

    def render_channel(self, entry: Entry) -> str:
        depth = 1
        category = entry.category or self._default_category
        body = self._theme.render_page(
            "channel",
            self._context(
                depth,
                entry=entry,
                category=category,
                category_href=make_href(category_path(category), depth=depth),
            ),
        )
        return self.render_layout(entry.name, body, depth=depth, description=entry.description)

    def render_layout(self, title: str, body: str, *, depth: int = 0, description: str = "") -> str:
        """Wrap a rendered body fragment in the site shell."""
        context = self._context(
            depth,
            title=title,
            description=description,
            content=Markup(body),
            assets=self._theme_assets(depth),
        )
        return self._theme.render_page("layout", context)

    def _context(self, depth: int, **values: Any) -> dict[str, Any]:
        context: dict[str, Any] = {
            "site": self._site.model_dump(),
            "root": make_root_prefix(depth),
        }
        context.update(values)
        return context

    def _entry_link(self, entry: Entry, *, depth: int) -> dict[str, Any]:
        return {
            "id": entry.id,
            "name": entry.name,
            "description": entry.description,
            "href": make_href(channel_path(entry.page_slug), depth=depth),
        }

    def _theme_assets(self, depth: int) -> dict[str, Any]:
        assets = self._theme.assets
        scripts: list[dict[str, Any]] = []
        for script in assets.scripts:
            normalized = script.model_dump(by_alias=True)
            normalized["src"] = make_href(script.src, depth=depth)
            scripts.append(normalized)
        return {
            "styles": [make_href(href, depth=depth) for href in assets.styles],
            "scripts": scripts,
        }
