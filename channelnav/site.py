"""Assemble the full static site from channel data."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Sequence

from jinja2 import TemplateError

from .config import Config
from .grouping import group_by_category
from .ingest import DataSourceError, load_entries
from .models import Category, Entry, UrlSet, category_path, channel_path, page_file
from .render import PageRenderer
from .staging import StagingResult, copy_static_files, reset_directory
from .themes import ThemeError
from .validation import EntryValidationError
from .writer import ArtifactWriter

logger = logging.getLogger(__name__)

EntryProvider = Callable[[], Sequence[Entry]]

FATAL_BUILD_ERRORS: tuple[type[BaseException], ...] = (
    DataSourceError,
    EntryValidationError,
    ThemeError,
    TemplateError,
    OSError,
)


@dataclass(slots=True)
class BuildResult:
    """Outputs collected while assembling the site."""

    output_dir: Path
    url_set: UrlSet
    categories: list[Category]
    entries: list[Entry]
    staging: StagingResult
    written: list[Path] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def page_count(self) -> int:
        return len(self.url_set)


class SiteAssembler:
    """Run the build steps in order, from a clean output directory to the sitemap."""

    def __init__(
        self,
        config: Config,
        *,
        provider: EntryProvider | None = None,
        renderer: PageRenderer | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._provider = provider or partial(load_entries, config.data_file)
        self._renderer = renderer
        self._log = log or logger

    def build(self) -> BuildResult:
        config = self._config
        start = time.perf_counter()
        output_dir = config.output_dir

        reset_directory(output_dir)
        staging = copy_static_files(config.static_dir, output_dir)
        self._log.debug("Staged %d static file(s) into %s", staging.total, output_dir)

        entries = list(self._provider())
        renderer = self._renderer or PageRenderer.from_config(config)
        writer = ArtifactWriter(output_dir)

        categories = group_by_category(entries, config.default_category)
        writer.write_page("index.html", renderer.render_home(categories))
        url_set = UrlSet(["/"])

        for category in categories:
            path = category_path(category.name)
            writer.write_page(page_file(path), renderer.render_category(category.name, category.entries))
            url_set.add(path)

        annotated: list[Entry] = []
        for entry in entries:
            slugged = entry.with_slug()
            path = channel_path(slugged.page_slug)
            writer.write_page(page_file(path), renderer.render_channel(slugged))
            url_set.add(path)
            annotated.append(slugged)

        writer.write_search_index(annotated)
        writer.write_urls_txt(url_set, config.site.base_url)
        writer.write_sitemap(url_set, config.site.resolved_base_url)
        writer.write_robots(config.site.resolved_base_url)

        result = BuildResult(
            output_dir=output_dir,
            url_set=url_set,
            categories=categories,
            entries=annotated,
            staging=staging,
            written=list(writer.written),
            duration_seconds=time.perf_counter() - start,
        )
        self._log.info(
            "Build complete: %d page(s) written to %s",
            result.page_count,
            output_dir,
            extra={"context": {"pages": result.page_count, "output_dir": str(output_dir)}},
        )
        return result


def run_build(config: Config, *, log: logging.Logger | None = None, **kwargs) -> BuildResult | None:
    """Build the site, logging any fatal error once.

    Returns ``None`` when the build failed; files written before the failure stay on disk.
    """
    active_log = log or logger
    try:
        return SiteAssembler(config, log=active_log, **kwargs).build()
    except FATAL_BUILD_ERRORS as exc:
        active_log.error(
            "Build failed: %s",
            exc,
            extra={
                "context": {
                    "error": type(exc).__name__,
                    "detail": str(exc),
                    "output_dir": str(config.output_dir),
                }
            },
        )
        return None
