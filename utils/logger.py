"""Structured logging; no global state beyond logging tree."""

from __future__ import annotations

import logging
import sys
from typing import Any, MutableMapping


def get_logger(name: str, trace_id: str | None = None) -> logging.Logger | logging.LoggerAdapter:
    """Return a logger for the given module/component; with trace_id, every line is tagged."""
    logger = logging.getLogger(name)
    if trace_id:
        return TraceLoggerAdapter(logger, {"trace_id": trace_id})
    return logger


class TraceLoggerAdapter(logging.LoggerAdapter):
    """Prefix messages with [trace_id] and expose it as a record attribute."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        trace_id = (self.extra or {}).get("trace_id", "")
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("trace_id", trace_id)
        kwargs["extra"] = extra
        return f"[{trace_id}] {msg}", kwargs


def setup_logging(
    level: str = "INFO",
    format_string: str | None = None,
    stream: Any = None,
) -> None:
    """
    Configure root logger once. Safe to call from main or tests.
    """
    if format_string is None:
        format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    stream = stream or sys.stdout
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=format_string,
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=stream,
        force=True,
    )


def log_structured(logger: logging.Logger | logging.LoggerAdapter, level: int, msg: str, **kwargs: Any) -> None:
    """Emit a log record with extra keys for structured aggregation."""
    logger.log(level, msg, extra=kwargs)
