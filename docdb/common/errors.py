"""
Repository error taxonomy.

Not-found is never an exception here: lookups return None and deletes
return False. Only conflicts, malformed pagination state and failures of
the remote service are raised.
"""

from typing import Optional


class RepositoryError(Exception):
    """Base class for all repository errors."""


class ConflictError(RepositoryError):
    """
    Raised when an update's concurrency token no longer matches the stored one.

    Attributes:
        document_id: Id of the document that was being updated
        expected_etag: Token the writer based its change on
        current_etag: Token currently stored (None if unknown)
    """

    def __init__(
        self,
        document_id: str,
        expected_etag: Optional[str],
        current_etag: Optional[str] = None,
    ):
        self.document_id = document_id
        self.expected_etag = expected_etag
        self.current_etag = current_etag
        super().__init__(
            f"Document '{document_id}' was modified concurrently "
            f"(expected etag {expected_etag!r}, found {current_etag!r})"
        )


class ServiceError(RepositoryError):
    """
    Raised when the remote database rejects or fails a request.

    The driver exception is chained as __cause__; its error code (if any)
    is kept on the instance so callers can decide whether to retry.
    """

    def __init__(self, operation: str, message: str, code: Optional[int] = None):
        self.operation = operation
        self.code = code
        super().__init__(f"{operation} failed: {message}")


class InvalidContinuationTokenError(RepositoryError, ValueError):
    """Raised when a continuation token cannot be decoded or belongs to another query."""
