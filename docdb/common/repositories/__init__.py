"""
Repository Pattern for the Shared Document Collection

Several document kinds share one physical collection; each repository
instance is bound to one kind, which is also the partition key.

Public API:
- DocumentRepository: typed CRUD + keyset pagination for one kind
- DocumentRepositoryInterface: abstract contract
- Page / SortOrder: paged query result and direction
- ConflictError, ServiceError, InvalidContinuationTokenError: error taxonomy

Usage:
    from docdb.common.database import DocumentClient
    from docdb.domain import User, USER_KIND

    with DocumentClient(settings) as client:
        users = client.repository(USER_KIND, User)
        created = users.add(User(name="Ada"))
        page = users.get_page("createdAt", "DESC")
        while page.has_more:
            page = users.get_page("createdAt", "DESC", page.continuation_token)
"""

from docdb.common.errors import (
    ConflictError,
    InvalidContinuationTokenError,
    RepositoryError,
    ServiceError,
)

from .base import DocumentRepositoryInterface, Page, SortOrder
from .document_repository import DocumentRepository

__all__ = [
    "DocumentRepository",
    "DocumentRepositoryInterface",
    "Page",
    "SortOrder",
    # Errors
    "RepositoryError",
    "ConflictError",
    "ServiceError",
    "InvalidContinuationTokenError",
]
