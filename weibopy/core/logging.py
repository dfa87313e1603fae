"""Logging utilities for weibopy modules."""

import logging
from datetime import datetime
from typing import List


def get_logger(name: str) -> logging.Logger:
    """Get a logger that automatically inherits from root logger.

    This ensures that loggers work with basicConfig() without needing
    explicit setup_logging() calls. The logger will:
    - Propagate to root logger (default behavior)
    - Only set a default level if root logger has no handlers

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    # Only set default level if root logger has no handlers
    # (i.e., basicConfig hasn't been called yet)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logger.setLevel(logging.WARNING)

    return logger


class OperationTrace:
    """
    Diagnostic buffer for a single public operation.

    Every line goes to the wrapped logger as usual and is also kept in memory,
    so the full history of a failed call can be written to the logs directory.

    Example:
        >>> trace = OperationTrace('weibopy.client')
        >>> trace.info("WeiboClient.profile: uid(123)")
        >>> text = trace.text()
    """

    def __init__(self, logger_name: str):
        self._logger = get_logger(logger_name)
        self._lines: List[str] = []
        self._children: List['OperationTrace'] = []

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _record(self, level: int, message: str) -> None:
        stamp = datetime.now().isoformat(timespec='milliseconds')
        self._lines.append(f"{stamp} {logging.getLevelName(level)} {message}")
        self._logger.log(level, message)

    def debug(self, message: str) -> None:
        self._record(logging.DEBUG, message)

    def info(self, message: str) -> None:
        self._record(logging.INFO, message)

    def warning(self, message: str) -> None:
        self._record(logging.WARNING, message)

    def error(self, message: str) -> None:
        self._record(logging.ERROR, message)

    def child(self) -> 'OperationTrace':
        """
        Create a trace for a concurrent sub-request.

        Child lines are kept apart so interleaved requests stay readable,
        and are appended after the parent's lines in creation order.
        """
        trace = OperationTrace(self._logger.name)
        self._children.append(trace)
        return trace

    def text(self) -> str:
        parts = ["\n".join(self._lines)]
        parts.extend(child.text() for child in self._children)
        return "\n".join(part for part in parts if part)
