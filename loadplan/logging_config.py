"""Structured logging configuration for loadplan."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

LOG_LEVEL_ENV = "LOADPLAN_LOG_LEVEL"
LOG_FORMAT_ENV = "LOADPLAN_LOG_FORMAT"  # "json" | "text" (default)
# Builders log every configuration call; keep the default quiet
DEFAULT_LOG_LEVEL = "WARNING"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name. Configures root loadplan logger on first use."""
    logger = logging.getLogger("loadplan" if name == "loadplan" else f"loadplan.{name}")
    if not logger.handlers and logger.level == logging.NOTSET:
        _configure_loadplan_logging()
    return logger


def resolve_logger(logger: logging.Logger | None, name: str) -> logging.Logger:
    """Pick the injected logger when one is given, else the loadplan logger for name."""
    return logger if logger is not None else get_logger(name)


def _configure_loadplan_logging() -> None:
    root = logging.getLogger("loadplan")
    if root.handlers:
        return
    level_name = (os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.WARNING)
    root.setLevel(level)
    fmt_env = (os.environ.get(LOG_FORMAT_ENV) or "text").lower()
    handler = logging.StreamHandler(sys.stderr)
    if fmt_env == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
    root.addHandler(handler)


class _JsonFormatter(logging.Formatter):
    """Simple JSON log formatter for structured logging (e.g. SIEM)."""

    def format(self, record: logging.LogRecord) -> str:
        import json
        obj: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt or "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(obj, ensure_ascii=False)
