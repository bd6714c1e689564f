"""Utilities for preparing the output directory before pages are rendered."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class StagingResult:
    """Summary of static files copied into the output root."""

    staged_paths: list[Path] = field(default_factory=list)
    skipped_dirs: list[Path] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.staged_paths)


def reset_directory(path: Path) -> None:
    """Remove a directory and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def copy_static_files(static_dir: Path, output_root: Path) -> StagingResult:
    """Copy the top-level files of ``static_dir`` into ``output_root``.

    Subdirectories are not descended into.
    """
    result = StagingResult()
    if not static_dir.is_dir():
        logger.warning("Static directory %s not found; no assets copied.", static_dir)
        return result

    output_root.mkdir(parents=True, exist_ok=True)
    for item in sorted(static_dir.iterdir()):
        if item.is_dir():
            result.skipped_dirs.append(item)
            continue
        destination = output_root / item.name
        shutil.copyfile(item, destination)
        result.staged_paths.append(destination)
    return result
