"""
utils/logger.py - Project-wide logging configuration
=====================================================
Provides a single `get_logger(name)` factory so every module gets a
consistently-formatted logger with colour-coded console output.

The default level comes from `config.LOG_LEVEL` (set `PPG_LOG_LEVEL=DEBUG`
to see per-frame detail).  `set_level()` changes every registered logger at
once, which is what `demo_cli.py --verbose` uses.
"""

import logging
import sys

from config import LOG_LEVEL

# Colour codes (ANSI-256, works on most terminals)
_COLOURS = {
    logging.DEBUG:    "\033[36m",   # cyan
    logging.INFO:     "\033[32m",   # green
    logging.WARNING:  "\033[33m",   # yellow
    logging.ERROR:    "\033[31m",   # red
    logging.CRITICAL: "\033[35m",   # magenta
}
_RESET = "\033[0m"


class _ColourFormatter(logging.Formatter):
    """Inject ANSI colour around the log-level tag (only on a real terminal)."""

    def __init__(self, *args, use_colour: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colour = use_colour

    def format(self, record: logging.LogRecord) -> str:
        if not self._use_colour:
            return super().format(record)
        # Work on a copy so other handlers see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        colour = _COLOURS.get(record.levelno, _RESET)
        record.levelname = f"{colour}{record.levelname:<8}{_RESET}"
        return super().format(record)


_BASE_FMT = "%(asctime)s  %(levelname)s  %(name)-24s  %(message)s"
_DATE_FMT = "%H:%M:%S"

# Module-level registry to avoid adding duplicate handlers
_loggers: dict[str, logging.Logger] = {}


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name: str, level: int | str = LOG_LEVEL) -> logging.Logger:
    """
    Return (or create) a named logger.

    Parameters
    ----------
    name  : str         Module / component name shown in log lines.
    level : int | str   Minimum severity (default from config.LOG_LEVEL).
    """
    if name in _loggers:
        return _loggers[name]

    numeric_level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    logger.propagate = False          # Avoid duplicate messages from root

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        _ColourFormatter(fmt=_BASE_FMT, datefmt=_DATE_FMT, use_colour=sys.stdout.isatty())
    )
    logger.addHandler(handler)

    _loggers[name] = logger
    return logger


def set_level(level: int | str) -> None:
    """Change the level of every logger created through `get_logger`."""
    numeric_level = _resolve_level(level)
    for logger in _loggers.values():
        logger.setLevel(numeric_level)
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
