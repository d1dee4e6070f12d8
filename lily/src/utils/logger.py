"""
Lily - Logging
===============
Logger factory shared by every Lily module.

Verbosity comes from ``settings.LOG_LEVEL`` when set, otherwise from
``settings.ENV``:
  • ``"dev"``  → DEBUG level
  • ``"prod"`` → WARNING level

Records go to **stderr**: ``lily-chat`` prints its JSON payload on
stdout, and the two must not interleave.

Every logger handed out here is remembered, so ``set_level()`` can
retune the whole pipeline at once (the CLI's ``--verbose`` / ``--quiet``).

Usage:
    from lily.src.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("[RAG] Something happened")
"""

import logging
import sys

from lily.config.settings import settings

_ENV_LEVEL_MAP = {
    "dev": logging.DEBUG,
    "prod": logging.WARNING,
}

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_loggers: dict[str, logging.Logger] = {}
_level_override: int | None = None


def default_level() -> int:
    """Level set by ``set_level()``, else ``LOG_LEVEL``, else the ``ENV`` mapping."""
    if _level_override is not None:
        return _level_override
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL)
    return _ENV_LEVEL_MAP.get(settings.ENV, logging.INFO)


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Return a named logger writing to stderr with the Lily format.

    Args:
        name:  Typically ``__name__`` of the calling module.
        level: Explicit level override.  Defaults to ``default_level()``.

    Returns:
        A configured ``logging.Logger`` instance.
    """
    logger = logging.getLogger(name)

    # Handlers are attached once per logger name
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(console_handler)
        logger.setLevel(level if level is not None else default_level())
        logger.propagate = False
    elif level is not None:
        logger.setLevel(level)

    _loggers[name] = logger
    return logger


def set_level(level: int) -> None:
    """Apply *level* to every logger from ``get_logger``, including later ones."""
    global _level_override
    _level_override = level
    for logger in _loggers.values():
        logger.setLevel(level)
