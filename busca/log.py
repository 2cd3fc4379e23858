"""
Logging setup for busca.

Loguru carries the diagnostic stream: warnings always, and the verbose
per-candidate trace when enabled. Results never go through the logger.
"""
import sys
from typing import Any

from loguru import logger as _loguru_logger

TRACE_FORMAT = "<dim>{time:HH:mm:ss.SSS}</dim> | <level>{level: <7}</level> | <level>{message}</level>"


def configure_logging(verbose: bool = False, sink: Any = None) -> Any:
    """
    Replaces loguru's default handler with a single stderr sink.

    Args:
        verbose (bool): Emit DEBUG records (the candidate trace) when set.
        sink: Alternative destination, stderr by default.

    Returns:
        The configured loguru logger.
    """
    try:
        _loguru_logger.remove()
    except ValueError:
        pass

    _loguru_logger.add(
        sink if sink is not None else sys.stderr,
        format=TRACE_FORMAT,
        level="DEBUG" if verbose else "WARNING",
        colorize=None,
        backtrace=False,
        diagnose=False,
    )
    return _loguru_logger


def get_logger():
    """Return the loguru logger."""
    return _loguru_logger
