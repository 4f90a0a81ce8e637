"""
Logging setup: informational messages to stdout, errors to stderr
"""

import logging
import sys

INFO_FORMAT = "%(levelname)s\t%(asctime)s %(message)s"
ERROR_FORMAT = "%(levelname)s\t%(asctime)s %(filename)s:%(lineno)d: %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

_configured = False


class _BelowErrorFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once

    Args:
        level: Minimum level name for the informational stream
    """
    global _configured
    if _configured:
        return

    info_handler = logging.StreamHandler(sys.stdout)
    info_handler.setLevel(level.upper())
    info_handler.addFilter(_BelowErrorFilter())
    info_handler.setFormatter(logging.Formatter(INFO_FORMAT, DATE_FORMAT))

    error_handler = logging.StreamHandler(sys.stderr)
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(ERROR_FORMAT, DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(level.upper())
    root.addHandler(info_handler)
    root.addHandler(error_handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
