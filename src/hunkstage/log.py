"""File logging setup. The interactive screen owns stdout, so logs go to a file or nowhere."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from hunkstage.config.schema import LOG_LEVELS

LOGGER_NAME = "hunkstage"


def configure_logging(log_file: Optional[str], level: str = "info") -> logging.Logger:
    """Attach a file handler to the package logger, or a NullHandler when *log_file* is empty."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    if not log_file:
        logger.addHandler(logging.NullHandler())
        return logger

    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.setLevel(LOG_LEVELS.get(level, logging.INFO))

    fh = logging.FileHandler(path, encoding="utf-8")
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(fh)
    return logger
