from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_FILENAME = "channelnav.yml"
DEFAULT_BASE_URL = "https://example.com"
DEFAULT_CATEGORY_LABEL = "Uncategorized"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SiteConfig(BaseModel):
    """Presentation and addressing settings for the generated site."""

    title: str = Field(default="Channel Directory")
    description: str = Field(default="A curated directory of channels, grouped by category.")
    language: str = Field(default="en")
    base_url: str | None = Field(
        default=None,
        description="Canonical site URL used for absolute links (e.g., 'https://example.com').",
    )

    @field_validator("base_url", mode="before")
    def _normalize_base_url(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        return text.rstrip("/")

    @property
    def resolved_base_url(self) -> str:
        return self.base_url or DEFAULT_BASE_URL


class DataSourceConfig(BaseModel):
    """Remote location used by ``channelnav sync`` to refresh the data file."""

    repo_url: str | None = Field(
        default=None,
        description="Raw URL returning the channel JSON array.",
    )
    github_owner: str | None = Field(default=None)
    github_repo: str | None = Field(default=None)
    github_path: str | None = Field(default=None)
    github_branch: str = Field(default="main")
    token: str | None = Field(
        default=None,
        description="Bearer token sent with remote requests when present.",
    )
    timeout: float = Field(default=30.0, gt=0)

    @property
    def uses_github_api(self) -> bool:
        return bool(self.github_owner and self.github_repo and self.github_path)

    @property
    def is_configured(self) -> bool:
        return bool(self.repo_url) or self.uses_github_api


class Config(BaseModel):
    data_file: Path = Field(default=Path("data/channels.json"))
    static_dir: Path = Field(default=Path("static"))
    output_dir: Path = Field(default=Path("dist"))
    templates_dir: Path | None = Field(
        default=None,
        description="Optional directory holding theme folders; packaged themes are used when unset.",
    )
    theme_name: str = Field(default="default")
    default_category: str = Field(
        default=DEFAULT_CATEGORY_LABEL,
        description="Category label assigned to entries without a category.",
    )
    log_level: str = Field(default="INFO")
    site: SiteConfig = Field(default_factory=SiteConfig)
    data_source: DataSourceConfig = Field(default_factory=DataSourceConfig)

    @field_validator("data_file", "static_dir", "output_dir", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("templates_dir", mode="before")
    def _ensure_optional_path(cls, value: Any) -> Path | None:
        if value is None or value == "":
            return None
        return Path(value)

    @field_validator("log_level", mode="before")
    def _normalize_level(cls, value: Any) -> str:
        text = str(value or "INFO").strip().upper()
        if text == "WARN":
            text = "WARNING"
        if text not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{value}'; expected one of {', '.join(LOG_LEVELS)}.")
        return text

    @field_validator("default_category")
    def _require_label(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("default_category must not be empty.")
        return text

    @property
    def themes_root(self) -> Path:
        if self.templates_dir is not None:
            return self.templates_dir
        return Path(__file__).resolve().parent / "themes"


def load_config(path: str | Path) -> Config:
    """Load configuration and resolve relative paths based on the config location.

    The ``path`` argument may point to a file (e.g., ``/site/channelnav.yml``) or a
    directory containing that file. All relative paths inside the configuration
    are interpreted relative to the directory holding the config file.
    """
    candidate = Path(path)
    data: dict[str, Any] = {}
    base_dir: Path
    if candidate.is_dir():
        # A project directory without a config file runs on defaults.
        config_file = candidate / CONFIG_FILENAME
        if config_file.exists():
            data = _read_yaml(config_file)
        base_dir = candidate.resolve()
    else:
        if not candidate.exists():
            raise FileNotFoundError(candidate)
        data = _read_yaml(candidate)
        base_dir = candidate.parent.resolve()

    cfg = Config(**data)

    def _abs_required(value: Path) -> Path:
        return value if value.is_absolute() else (base_dir / value).resolve()

    cfg.data_file = _abs_required(cfg.data_file)
    cfg.static_dir = _abs_required(cfg.static_dir)
    cfg.output_dir = _abs_required(cfg.output_dir)
    if cfg.templates_dir is not None:
        cfg.templates_dir = _abs_required(cfg.templates_dir)
    return cfg


def apply_env_overrides(config: Config, environ: Mapping[str, str] | None = None) -> Config:
    """Return a copy of ``config`` with values taken from environment variables.

    Only non-empty variables override the file configuration.
    """
    env = os.environ if environ is None else environ

    def _get(name: str) -> str | None:
        value = env.get(name)
        if value is None or not value.strip():
            return None
        return value.strip()

    site_updates: dict[str, Any] = {}
    if (site_url := _get("SITE_URL")) is not None:
        site_updates["base_url"] = site_url

    source_updates: dict[str, Any] = {}
    for env_name, field_name in (
        ("DATA_REPO_URL", "repo_url"),
        ("DATA_REPO_GITHUB_OWNER", "github_owner"),
        ("DATA_REPO_GITHUB_NAME", "github_repo"),
        ("DATA_REPO_FILE_PATH", "github_path"),
        ("DATA_REPO_BRANCH", "github_branch"),
        ("GITHUB_TOKEN", "token"),
    ):
        if (value := _get(env_name)) is not None:
            source_updates[field_name] = value

    updates: dict[str, Any] = {}
    if (level := _get("LOG_LEVEL")) is not None:
        updates["log_level"] = level
    if site_updates:
        updates["site"] = config.site.model_copy(update=site_updates)
    if source_updates:
        updates["data_source"] = config.data_source.model_copy(update=source_updates)

    if not updates:
        return config
    # Round-trip through validation so overrides get the same normalization as file values.
    merged = config.model_dump()
    merged.update({key: value.model_dump() if isinstance(value, BaseModel) else value for key, value in updates.items()})
    return Config.model_validate(merged)


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping at the top level.")
    return data
