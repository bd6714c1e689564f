"""Theme manifests and the Jinja environment that renders directory pages.

A theme is a folder below the themes root holding a ``theme.json`` manifest and
the templates it names. Every theme must provide the four page entrypoints in
``PAGE_ENTRYPOINTS``; a custom theme may override only some of them and inherit
the rest, along with its assets, from the fallback theme.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "theme.json"
DEFAULT_THEME_NAME = "default"
PAGE_ENTRYPOINTS = ("layout", "index", "category", "channel")


class ThemeError(RuntimeError):
    """Raised when no usable theme can be assembled."""


class ScriptAsset(BaseModel):
    """A ``<script>`` tag emitted by the layout."""

    model_config = ConfigDict(populate_by_name=True)

    src: str
    type: str | None = None
    defer: bool = False
    async_: bool = Field(default=False, alias="async")


class ThemeAssets(BaseModel):
    """Stylesheets and scripts, as paths relative to the site root."""

    styles: list[str] = Field(default_factory=list)
    scripts: list[ScriptAsset] = Field(default_factory=list)


class ThemeManifest(BaseModel):
    """Contents of a ``theme.json`` file."""

    model_config = ConfigDict(extra="ignore")

    name: str = "Unnamed Theme"
    version: str | None = None
    entrypoints: dict[str, str] = Field(default_factory=dict)
    assets: ThemeAssets = Field(default_factory=ThemeAssets)

    def merge_with(self, fallback: ThemeManifest) -> ThemeManifest:
        """Fill entrypoints and empty asset lists from ``fallback``."""
        assets = ThemeAssets(
            styles=self.assets.styles or fallback.assets.styles,
            scripts=self.assets.scripts or fallback.assets.scripts,
        )
        return self.model_copy(
            update={
                "entrypoints": {**fallback.entrypoints, **self.entrypoints},
                "assets": assets,
            }
        )


def read_manifest(theme_dir: Path) -> ThemeManifest | None:
    """Parse ``theme_dir/theme.json``; ``None`` when the theme folder has no manifest."""
    manifest_path = theme_dir / MANIFEST_FILENAME
    if not manifest_path.is_file():
        logger.debug("No theme manifest at %s", manifest_path)
        return None
    try:
        payload = json.loads(manifest_path.read_text(encoding="utf-8"))
        return ThemeManifest.model_validate(payload)
    except (OSError, ValueError) as exc:
        # ValidationError and JSONDecodeError are both ValueErrors.
        kind = "invalid" if isinstance(exc, ValidationError) else "unreadable"
        raise ThemeError(f"Theme manifest {manifest_path} is {kind}: {exc}") from exc


class ThemeLoader:
    """Resolve the active theme against its fallback and render page entrypoints."""

    def __init__(
        self,
        *,
        themes_root: Path,
        active_theme: str = DEFAULT_THEME_NAME,
        fallback_theme: str = DEFAULT_THEME_NAME,
    ) -> None:
        if not themes_root.exists():
            raise ThemeError(f"Themes root '{themes_root}' does not exist.")
        self._themes_root = themes_root
        self._name = active_theme or DEFAULT_THEME_NAME
        fallback_name = fallback_theme or DEFAULT_THEME_NAME

        self.manifest, theme_dirs = self._resolve(self._name, fallback_name)
        self.environment = Environment(
            loader=FileSystemLoader([str(path) for path in theme_dirs]),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.ensure_templates(PAGE_ENTRYPOINTS)

    @property
    def assets(self) -> ThemeAssets:
        return self.manifest.assets

    def render_page(self, key: str, context: dict[str, Any]) -> str:
        template = self.environment.get_template(self._entrypoint(key))
        return template.render(**context)

    def ensure_templates(self, keys: Iterable[str]) -> None:
        """Fail early when an entrypoint is undeclared or its template file is missing."""
        for key in keys:
            template_name = self._entrypoint(key)
            try:
                self.environment.get_template(template_name)
            except TemplateNotFound as exc:
                raise ThemeError(
                    f"Template '{template_name}' for entrypoint '{key}' is missing from theme '{self._name}'."
                ) from exc

    def _entrypoint(self, key: str) -> str:
        template_name = self.manifest.entrypoints.get(key)
        if not template_name:
            raise ThemeError(f"Theme '{self._name}' has no '{key}' entrypoint.")
        return template_name

    def _resolve(self, active: str, fallback: str) -> tuple[ThemeManifest, list[Path]]:
        """Return the effective manifest and template folders, most specific first."""
        fallback_dir = self._themes_root / fallback
        fallback_manifest = read_manifest(fallback_dir)

        if active != fallback:
            active_dir = self._themes_root / active
            active_manifest = read_manifest(active_dir)
            if active_manifest is not None:
                if fallback_manifest is None:
                    return active_manifest, [active_dir]
                return active_manifest.merge_with(fallback_manifest), [active_dir, fallback_dir]
            logger.warning("Active theme '%s' not available. Falling back to '%s'.", active, fallback)

        if fallback_manifest is None:
            raise ThemeError(f"Theme '{fallback}' could not be loaded from {self._themes_root}.")
        self._name = fallback
        return fallback_manifest, [fallback_dir]
