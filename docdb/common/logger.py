"""
Centralized logging configuration for the document database workshop.

Provides context logging tagged with the document kind and an optional
request id, so every repository call can be traced back to the collection
partition it touched. Supports a debug_mode flag for verbose logging.
"""

import logging
import os
import sys
from typing import Optional


# Global debug mode flag - can be set via environment or at startup
_GLOBAL_DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"


def set_global_debug_mode(enabled: bool) -> None:
    """Set global debug mode."""
    global _GLOBAL_DEBUG_MODE
    _GLOBAL_DEBUG_MODE = enabled


def is_debug_mode() -> bool:
    """Check if debug mode is enabled globally."""
    return _GLOBAL_DEBUG_MODE


class ContextLogger:
    """
    Logger that prefixes messages with the document kind and request id.
    """

    def __init__(
        self,
        name: str,
        kind: Optional[str] = None,
        request_id: Optional[str] = None,
        debug_mode: Optional[bool] = None
    ):
        """
        Initialize context logger.

        Args:
            name: Logger name (usually __name__)
            kind: Optional document kind (partition key value, e.g. "User")
            request_id: Optional request identifier for correlation
            debug_mode: If True, enables DEBUG level for this logger.
                       If None, uses global debug mode setting.
        """
        self.logger = logging.getLogger(name)
        self.kind = kind
        self.request_id = request_id

        self._debug_mode = debug_mode if debug_mode is not None else is_debug_mode()

        if self._debug_mode:
            self.logger.setLevel(logging.DEBUG)

    @property
    def level(self) -> int:
        """Get current logging level."""
        return self.logger.level

    def _format_message(self, message: str) -> str:
        """Add contextual prefix to message."""
        prefix_parts = []
        if self.request_id:
            prefix_parts.append(f"[req:{self.request_id[:8]}]")
        if self.kind:
            prefix_parts.append(f"[kind:{self.kind}]")

        if prefix_parts:
            return f"{' '.join(prefix_parts)} {message}"
        return message

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self.logger.debug(self._format_message(message), **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(self._format_message(message), **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(self._format_message(message), **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message."""
        self.logger.error(self._format_message(message), **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with traceback."""
        self.logger.exception(self._format_message(message), **kwargs)


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure global logging settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Log format ("simple" or "json")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    if is_debug_mode():
        log_level = logging.DEBUG

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if format == "json":
        # One JSON object per line for log aggregators
        formatter = logging.Formatter(
            '{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # The driver is chatty at DEBUG; keep it at WARNING unless asked otherwise
    logging.getLogger("pymongo").setLevel(max(log_level, logging.WARNING))


def get_logger(
    name: str,
    kind: Optional[str] = None,
    request_id: Optional[str] = None,
    debug_mode: Optional[bool] = None
) -> ContextLogger:
    """
    Get a context logger instance.

    Args:
        name: Logger name (usually __name__)
        kind: Optional document kind
        request_id: Optional request identifier
        debug_mode: If True, enables DEBUG level. If None, uses global setting.

    Returns:
        ContextLogger instance
    """
    return ContextLogger(name, kind, request_id, debug_mode)
