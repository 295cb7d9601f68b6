"""Logging utilities for Design Sync.

Records are emitted as one JSON object per line. Fields bound with
:func:`log_context` are attached to every record logged inside the block,
including records from asyncio tasks created there, since tasks copy the
current context.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import IO, Any, Iterator

import orjson

_DEFAULT_LEVEL = os.environ.get("DSYNC_LOG_LEVEL", "INFO")
_CONTEXT: ContextVar[dict[str, Any]] = ContextVar("dsync_log_context", default={})

# uvicorn runs with log_config=None, so its loggers need explicit wiring
_SERVER_LOGGERS = {"uvicorn": logging.INFO, "uvicorn.error": logging.INFO, "uvicorn.access": logging.WARNING}


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind ``ctx_<name>`` fields to records logged within the block."""
    token = _CONTEXT.set({**_CONTEXT.get(), **fields})
    try:
        yield
    finally:
        _CONTEXT.reset(token)


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _CONTEXT.get().items():
            attr = f"ctx_{key}"
            if not hasattr(record, attr):
                setattr(record, attr, value)
        return True


class JsonFormatter(logging.Formatter):
    """Lightweight JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - thin wrapper
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in record.__dict__.items() if key.startswith("ctx_")
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(
    level: str | int = _DEFAULT_LEVEL,
    use_json: bool = True,
    stream: IO[str] | None = None,
) -> None:
    """Install a single stderr handler on the root logger."""
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.addFilter(ContextFilter())
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    for name, server_level in _SERVER_LOGGERS.items():
        server_logger = logging.getLogger(name)
        server_logger.handlers = []
        server_logger.propagate = True
        server_logger.setLevel(server_level)


def get_logger(name: str = "design_sync") -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "log_context", "ContextFilter", "JsonFormatter"]
