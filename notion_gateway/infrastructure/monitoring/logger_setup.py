"""Centralized logging configuration for the gateway.

Console output goes to stderr because stdout carries the MCP stdio stream.
"""

import logging
import sys
from typing import Optional

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "mcp.server.lowlevel.server")


def _attach(root: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None,
) -> None:
    """Configures the root logger; safe to call more than once.

    Args:
        log_level: The minimum logging level (e.g., logging.DEBUG).
        log_format: The format string for log messages.
        log_file: Optional path to a file that receives a copy of every record.
    """
    root = logging.getLogger()
    root.setLevel(log_level)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    formatter = logging.Formatter(log_format)
    _attach(root, logging.StreamHandler(sys.stderr), log_level, formatter)

    if log_file:
        try:
            _attach(root, logging.FileHandler(log_file, encoding='utf-8'), log_level, formatter)
        except OSError as e:
            root.error(f"Cannot log to file {log_file}: {e}")
        else:
            root.info(f"Logging to file: {log_file}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    root.debug(f"Logging configured at {logging.getLevelName(log_level)}")
