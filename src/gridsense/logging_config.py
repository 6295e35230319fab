import logging
import os
import sys
from typing import Optional, TextIO

PACKAGE_LOGGER = "gridsense"
LEVEL_ENV_VAR = "GRIDSENSE_LOG_LEVEL"


def resolve_level(default_level: int = logging.INFO) -> int:
    name = os.getenv(LEVEL_ENV_VAR)
    if not name:
        return default_level
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default_level


def configure_logging(default_level: int = logging.INFO, stream: Optional[TextIO] = None) -> logging.Logger:
    """Attach a console handler to the ``gridsense`` logger only.

    The root logger and any handlers the host application installed are left
    alone. Calling this again replaces the handler it added before.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolve_level(default_level))

    for h in list(logger.handlers):
        if getattr(h, "_gridsense_handler", False):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler._gridsense_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
