"""
Logging configuration, set up once by the CLI entry point.

Every module uses ``logger = logging.getLogger(__name__)`` and inherits this
config. Level precedence: ``-v`` flags > WEBPM_LOG_LEVEL > WARNING.
"""

import logging
import os
import sys
from typing import Optional

_FMT_MINIMAL = "%(message)s"
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_DATEFMT = "%H:%M:%S"


def level_from_verbosity(verbosity: int) -> Optional[str]:
    """Map repeated -v flags to a level name, None if not given."""
    if verbosity <= 0:
        return None
    return "INFO" if verbosity == 1 else "DEBUG"


def setup_logging(level: Optional[str] = None):
    """Configure the root logger for the whole process."""
    level = level or os.environ.get("WEBPM_LOG_LEVEL") or "WARNING"
    numeric_level = _parse_level(level)

    if numeric_level <= logging.DEBUG:
        fmt = _FMT_DEBUG
    elif numeric_level <= logging.INFO:
        fmt = _FMT_VERBOSE
    else:
        fmt = _FMT_MINIMAL

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATEFMT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)


def _parse_level(name: str) -> int:
    level = logging.getLevelName(str(name).strip().upper())
    return level if isinstance(level, int) else logging.WARNING
