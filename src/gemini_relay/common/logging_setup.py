"""Central logging setup for the project."""
from __future__ import annotations
import logging
import sys

# httpx logs full request URLs at INFO, and the upstream URL carries the API key.
_QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: int | str = logging.INFO) -> None:
    """
    Configure root logger with sane defaults.

    Args:
        level: Logging level, as a number or a name such as "DEBUG".
    """
    handler = logging.StreamHandler(sys.stdout)
    fmt = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
