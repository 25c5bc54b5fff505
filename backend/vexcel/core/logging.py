"""Logging utilities for VExcel."""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import orjson

_DEFAULT_LEVEL = os.environ.get("VEXCEL_LOG_LEVEL", "INFO")
_CTX_PREFIX = "ctx_"

# HTTP client libraries log every request at INFO/DEBUG; the store clients already do.
_CHATTY_LOGGERS = ("urllib3", "httpx", "httpcore", "openai", "hpack")


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``ctx_*`` extras are gathered under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            key[len(_CTX_PREFIX) :]: value for key, value in record.__dict__.items() if key.startswith(_CTX_PREFIX)
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(level: str | int = _DEFAULT_LEVEL, use_json: bool | None = None) -> None:
    """Install a single stdout handler on the root logger.

    ``VEXCEL_LOG_FORMAT=text`` switches to a human-readable line format.
    """
    if use_json is None:
        use_json = os.environ.get("VEXCEL_LOG_FORMAT", "json").lower() != "text"
    logging.captureWarnings(True)
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "vexcel") -> logging.Logger:
    """Return configured logger, configuring root on first call."""
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def log_context(**fields: Any) -> dict[str, Any]:
    """Build an ``extra`` mapping for :class:`JsonFormatter`; ``None`` values are dropped."""
    return {f"{_CTX_PREFIX}{key}": value for key, value in fields.items() if value is not None}


__all__ = ["JsonFormatter", "configure_logging", "get_logger", "log_context"]
