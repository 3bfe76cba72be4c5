"""Logging setup with rich console output and per-request context."""
from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from threading import RLock
from typing import Iterator

from rich.console import Console
from rich.logging import RichHandler

APP_LOGGER = "fintrack"

_context_var: contextvars.ContextVar[dict[str, object]] = contextvars.ContextVar(
    "log_context", default={}
)
_config_lock = RLock()
_handler: RichHandler | None = None


class ContextFilter(logging.Filter):
    """Prefix records with the key-value pairs bound for the current request."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _context_var.get()
        if context:
            record.context = " ".join(f"{k}={v}" for k, v in context.items()) + " "
        else:
            record.context = ""
        return True


@contextmanager
def log_context(**values: object) -> Iterator[None]:
    current = dict(_context_var.get())
    current.update({k: v for k, v in values.items() if v is not None})
    token = _context_var.set(current)
    try:
        yield
    finally:
        _context_var.reset(token)


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def init_logging(level: str | int = "INFO") -> None:
    """Attach a rich console handler to the application logger.

    Repeated calls only adjust the level.
    """
    global _handler
    with _config_lock:
        parsed = _parse_level(level)
        logger = logging.getLogger(APP_LOGGER)
        logger.setLevel(parsed)
        if _handler is not None:
            _handler.setLevel(parsed)
            return

        handler = RichHandler(
            console=Console(stderr=True),
            show_level=True,
            show_path=False,
            log_time_format="%Y-%m-%d %H:%M:%S",
        )
        handler.setLevel(parsed)
        handler.setFormatter(logging.Formatter("%(context)s%(message)s"))
        handler.addFilter(ContextFilter())
        logger.addHandler(handler)
        _handler = handler
