"""Logger lookup for stave_practice modules."""
import logging
from typing import Dict

_loggers: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, creating it on first use.

    Scripts run as ``__main__`` log under ``stave_practice.main`` so that the
    levels from logging_config still apply to them.

    Args:
        name: Module name, normally ``__name__``
    """
    if name == "__main__":
        name = "stave_practice.main"
    logger = _loggers.get(name)
    if logger is None:
        logger = _loggers[name] = logging.getLogger(name)
    return logger
