"""
Centralized error handling for repository and sample code.

Provides a decorator that logs failed database calls and translates driver
exceptions into the repository error taxonomy, plus a context manager for
logging exceptions without swallowing them.
"""

import logging
from functools import wraps
from typing import Any, Callable, TypeVar

from pymongo.errors import OperationFailure, PyMongoError

from .errors import RepositoryError, ServiceError

# Type variable for generic return types
T = TypeVar("T")


def error_code(exc: BaseException) -> Any:
    """Return the server error code carried by a driver exception, if any."""
    if isinstance(exc, OperationFailure):
        return exc.code
    return getattr(exc, "code", None)


def service_operation(
    operation_name: str,
    critical: bool = True,
):
    """
    Decorator for calls that reach the remote document database.

    Provides:
    - ERROR logging with stack trace on failure for critical operations,
      WARNING otherwise
    - Translation of pymongo errors into ServiceError (original chained)

    Repository errors raised by the wrapped function itself (conflicts,
    invalid tokens) pass through untouched.

    Args:
        operation_name: Human-readable operation name (e.g., "add", "get_page")
        critical: If True, logs at ERROR level with stack trace; if False, WARNING

    Usage:
        @service_operation("get_by_id")
        def get_by_id(self, document_id: str):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            logger = logging.getLogger(func.__module__)
            try:
                result = func(*args, **kwargs)
            except RepositoryError:
                raise
            except PyMongoError as e:
                code = error_code(e)
                log_level = logging.ERROR if critical else logging.WARNING
                logger.log(
                    log_level,
                    f"[{operation_name}] Failed (code={code}): {e}",
                    exc_info=critical,
                )
                raise ServiceError(operation_name, str(e), code=code) from e
            return result

        return wrapper

    return decorator


def log_on_exception(
    logger: logging.Logger,
    operation: str,
    level: int = logging.WARNING,
    include_traceback: bool = False,
):
    """
    Context manager for logging exceptions without swallowing them silently.

    Usage:
        with log_on_exception(logger, "index creation", level=logging.ERROR):
            collection.create_index(...)

    Args:
        logger: Logger instance to use
        operation: Operation description for the log message
        level: Log level (default: WARNING)
        include_traceback: Whether to include stack trace in log
    """

    class ExceptionLogger:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is not None:
                logger.log(
                    level,
                    f"[{operation}] Failed: {exc_val}",
                    exc_info=include_traceback,
                )
            # Never suppress the exception
            return False

    return ExceptionLogger()
