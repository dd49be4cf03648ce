"""Root logging setup for the woundscan loggers."""

import logging
import sys


def configure_logging(level: str = None, stream=None) -> None:
    if level is None:
        from core import constants
        level = constants.LOG_LEVEL
    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    logging.basicConfig(
        stream=stream or sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
    )

    logging.getLogger("woundscan").debug("Logging is configured.")
