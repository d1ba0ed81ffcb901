"""Centralized logging helpers for discdump.

Library modules only ever call ``get_logger``/``logging.getLogger``; the CLI
(or an embedding application) decides the output format once through
``configure_logging``.
"""

from __future__ import annotations

import contextvars
import functools
import json
import logging
import os
import sys
import time
import uuid
from pathlib import Path
from typing import Optional


_STD_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_CONSOLE_HANDLER_NAME = "discdump_console"


def get_logger(
    name: str = "discdump",
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """Return a named logger, optionally mirrored to ``log_dir/discdump.log``."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    has_file = any(isinstance(h, logging.FileHandler) for h in logger.handlers)
    if log_dir and not has_file:
        log_dir = Path(log_dir)
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(str(log_dir / "discdump.log"), encoding="utf-8")
            fh.setFormatter(logging.Formatter(_STD_FORMAT))
            logger.addHandler(fh)
        except OSError:
            logger.debug("Could not create file handler for logger at %s", log_dir)

    return logger


# Correlation ID support for tracing one dump across modules
_cid_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "discdump_correlation_id", default=None
)


def set_correlation_id(cid: str | None = None) -> str:
    """Set or create and set a correlation id for the current context.

    Returns the correlation id string.
    """
    if cid is None:
        cid = uuid.uuid4().hex
    _cid_var.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _cid_var.get()


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter that includes correlation id when available."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        cid = get_correlation_id()
        if cid:
            payload["correlation_id"] = cid
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _short_repr(obj, limit: int = 80) -> str:
    text = repr(obj)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def log_call(level: int = logging.INFO):
    """Decorator that logs function entry, duration and exit.

    Usage:
        @log_call()
        def generate(...):
            ...
    """

    def _decorator(func):
        @functools.wraps(func)
        def _wrapper(*args, **kwargs):
            logger = logging.getLogger(func.__module__)
            start = time.time()
            logger.debug(
                "Entering %s; args=%s kwargs=%s",
                func.__qualname__,
                [_short_repr(a) for a in args],
                {k: _short_repr(v) for k, v in kwargs.items()},
            )
            try:
                result = func(*args, **kwargs)
            except Exception:
                duration = (time.time() - start) * 1000.0
                logger.exception(
                    "Exception in %s after %.2fms",
                    func.__qualname__,
                    duration,
                )
                raise
            duration = (time.time() - start) * 1000.0
            logger.log(
                level,
                "Exited %s; duration_ms=%.2f",
                func.__qualname__,
                duration,
            )
            return result

        return _wrapper

    return _decorator


def configure_logging(env: Optional[str] = None, level: int = logging.INFO):
    """Configure the root logger.

    env: 'auto' | 'json' | 'human'; ``None`` reads ``DISCDUMP_LOG_FORMAT``
    and falls back to 'auto'.
    - 'auto' chooses human-readable when stderr is a TTY, otherwise JSON.
    - 'json' forces JSON output.
    - 'human' forces a readable formatter.

    Returns the root logger.
    """
    chosen = (env or os.getenv("DISCDUMP_LOG_FORMAT", "auto")).lower()
    if chosen in ("json", "human"):
        mode = chosen
    else:
        try:
            mode = "human" if sys.stderr.isatty() else "json"
        except (AttributeError, ValueError):
            mode = "json"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Replace our own console handler so repeated calls can switch format
    for handler in list(root_logger.handlers):
        if getattr(handler, "name", None) == _CONSOLE_HANDLER_NAME:
            root_logger.removeHandler(handler)

    sh = logging.StreamHandler()
    sh.name = _CONSOLE_HANDLER_NAME
    if mode == "json":
        sh.setFormatter(JsonFormatter())
    else:
        sh.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root_logger.addHandler(sh)

    return root_logger
