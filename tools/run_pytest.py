"""Run the test suite with the project's virtualenv interpreter when one exists."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _interpreter() -> str:
    bin_dir, name = ("Scripts", "python.exe") if os.name == "nt" else ("bin", "python")
    candidate = PROJECT_ROOT / ".venv" / bin_dir / name
    return str(candidate) if candidate.exists() else sys.executable


def main(argv: list[str] | None = None) -> int:
    extra = list(argv or [])
    return subprocess.call([_interpreter(), "-m", "pytest", "-q", *extra], cwd=PROJECT_ROOT)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
