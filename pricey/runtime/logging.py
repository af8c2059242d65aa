"""Logging setup for the pricey namespace.

Usage:
    from pricey.runtime import get_logger
    logger = get_logger(__name__)

    logger.debug("Stage %s for %r", strategy, text)

Environment variables:
    PRICEY_LOG_LEVEL: DEBUG, INFO, WARNING or ERROR (or a numeric level). Default: INFO
"""

import logging
import os
import sys
from typing import IO

DEFAULT_LOG_LEVEL = logging.INFO

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(levelname)s [%(name)s:%(lineno)d] %(message)s"

LOGGER_NAMESPACE = "pricey"

_LEVEL_NAMES = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

_handler: logging.Handler | None = None


def parse_log_level(value: str | None, default: int = DEFAULT_LOG_LEVEL) -> int:
    """Level from a name ("debug") or number ("10"); unknown values give the default."""
    raw = (value or "").strip().upper()
    if raw.isdigit():
        return int(raw)
    return _LEVEL_NAMES.get(raw, default)


def _formatter_for(level: int) -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT_DEBUG if level <= logging.DEBUG else LOG_FORMAT)


def configure_logging(level: int | None = None, stream: IO[str] | None = None) -> logging.Logger:
    """Attach the pricey stderr handler once and set the namespace level.

    Later calls only change the level when one is given explicitly, so
    get_logger() can call this freely.

    Args:
        level: Log level. If None, PRICEY_LOG_LEVEL or DEFAULT_LOG_LEVEL on first call.
        stream: Handler stream for the first call. Defaults to sys.stderr.
    """
    global _handler

    namespace = logging.getLogger(LOGGER_NAMESPACE)
    if _handler is None:
        if level is None:
            level = parse_log_level(os.environ.get("PRICEY_LOG_LEVEL"))
        _handler = logging.StreamHandler(stream or sys.stderr)
        namespace.addHandler(_handler)
        namespace.propagate = False
    if level is not None:
        set_log_level(level)
    return namespace


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, always inside the pricey namespace.

    Args:
        name: Module name, typically __name__
    """
    configure_logging()
    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def set_log_level(level: int) -> None:
    """Change the namespace level at runtime; DEBUG adds line numbers to the format.

    Only the pricey handler is reformatted; handlers attached by others keep theirs.
    """
    logging.getLogger(LOGGER_NAMESPACE).setLevel(level)
    if _handler is not None:
        _handler.setFormatter(_formatter_for(level))
