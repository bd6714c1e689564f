"""Build a static channel directory site from a JSON list of channels.

``load_config`` reads ``channelnav.yml``; ``run_build`` writes the home page,
one page per category and per channel, plus ``search-index.json``,
``sitemap.xml``, ``robots.txt`` and ``urls.txt`` into the output directory.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import tomllib

from .config import Config, load_config
from .ingest import load_entries
from .site import BuildResult, SiteAssembler, run_build

__all__ = [
    "BuildResult",
    "Config",
    "SiteAssembler",
    "__version__",
    "load_config",
    "load_entries",
    "run_build",
]


def _source_checkout_version() -> str:
    # Running from a checkout without `pip install -e .`.
    pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
    if not pyproject.is_file():
        return "0+unknown"
    with pyproject.open("rb") as handle:
        return tomllib.load(handle)["project"]["version"]


try:
    __version__ = version("channelnav")
except PackageNotFoundError:
    __version__ = _source_checkout_version()
