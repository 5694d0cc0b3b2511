"""Logging setup for the stave_practice loggers.

Every configured logger gets the same console handler (and file handler, when
one is requested) and stops propagating, so messages are printed once.
"""

import logging
import sys
from typing import Dict, List, Optional

PACKAGE = "stave_practice"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

MODULE_LOG_LEVELS: Dict[str, int] = {
    PACKAGE: logging.INFO,
    f"{PACKAGE}.main": logging.INFO,
    f"{PACKAGE}.practice_session": logging.INFO,
    f"{PACKAGE}.scroll_engine": logging.INFO,
    f"{PACKAGE}.match_engine": logging.INFO,  # DEBUG logs every comparison
    f"{PACKAGE}.audio": logging.INFO,
    f"{PACKAGE}.core": logging.INFO,
    f"{PACKAGE}.ui": logging.WARNING,
    # Third-party
    "aubio": logging.ERROR,
    "sounddevice": logging.WARNING,
    "": logging.ERROR,
}

_handlers: List[logging.Handler] = []


def _package_level(level: Optional[str]) -> Optional[int]:
    if not level:
        return None
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        logging.getLogger(__name__).error(f"Invalid log level: {level}")
        return None
    return numeric


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure the package loggers.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Level name (e.g. "DEBUG") applied to every stave_practice logger
        log_file: Also write log records to this file
    """
    global _handlers

    for old in _handlers:
        old.close()
    _handlers = _build_handlers(log_file)

    override = _package_level(level)
    for name, default_level in MODULE_LOG_LEVELS.items():
        logger = logging.getLogger(name)
        if override is not None and name.startswith(PACKAGE):
            logger.setLevel(override)
        else:
            logger.setLevel(default_level)

        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        for handler in _handlers:
            logger.addHandler(handler)
        logger.propagate = False

    logging.getLogger(PACKAGE).debug("Logging configured")
