"""Logging configuration shared by the command line entry points."""

from __future__ import annotations

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "channelnav"


class ContextFormatter(logging.Formatter):
    """Append the ``context`` mapping passed through ``extra`` to the message."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context: Any = getattr(record, "context", None)
        if context:
            message = f"{message} {json.dumps(context, ensure_ascii=False, sort_keys=True, default=str)}"
        return message


def configure_logging(level: str = "INFO", *, console: Console | None = None) -> logging.Logger:
    """Attach a single rich handler to the package logger at ``level``."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_channelnav_handler", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(ContextFormatter("%(message)s"))
    handler._channelnav_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
