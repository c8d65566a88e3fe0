"""
Repository Interface Definitions

Defines the abstract contract for typed, paginated CRUD over one collection
shared by several document kinds. The kind tag doubles as partition key and
as a namespace boundary: no operation ever sees another kind's documents.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel

from docdb.domain.documents import Document, Principal

T = TypeVar("T", bound=BaseModel)


class SortOrder(str, Enum):
    """Sort direction for paged queries."""
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: Union[str, "SortOrder"]) -> "SortOrder":
        """Case-insensitive parse; raises ValueError for anything but ASC/DESC."""
        if isinstance(value, SortOrder):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Sort order must be ASC or DESC, got {value!r}")

    @property
    def direction(self) -> int:
        """pymongo sort direction."""
        return 1 if self is SortOrder.ASC else -1


@dataclass
class Page(Generic[T]):
    """
    One page of a paged query.

    Attributes:
        items: Documents on this page, in query order
        continuation_token: Token to pass back for the next page, None at the end

    has_more is True exactly when continuation_token is set, so callers keep
    requesting pages with the last token until has_more is False.
    """
    items: List[Document[T]] = field(default_factory=list)
    continuation_token: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.continuation_token is not None


class DocumentRepositoryInterface(ABC, Generic[T]):
    """
    Abstract interface for one document kind in a shared collection.

    Implementations:
    - DocumentRepository: MongoDB wire protocol (Atlas, Cosmos DB, self-hosted)

    Not-found is never raised: lookups return None, delete returns False.
    Failures of the remote service surface as ServiceError.
    """

    kind: str

    @abstractmethod
    def add(
        self,
        data: T,
        created_by: Optional[Principal] = None,
        document_id: Optional[str] = None,
    ) -> Document[T]:
        """
        Insert a new document of this repository's kind.

        Args:
            data: Typed payload
            created_by: Identity snapshot of the creator
            document_id: Explicit id (a UUID is generated when omitted)

        Returns:
            The stored document with id, type, createdAt and etag set

        Raises:
            ServiceError: If the insert fails (duplicate id, network, throttling)
        """
        pass

    @abstractmethod
    def get_by_id(self, document_id: str) -> Optional[Document[T]]:
        """
        Point lookup by id within this kind.

        Args:
            document_id: Document id (must be non-empty)

        Returns:
            Document if found under this kind, None otherwise

        Raises:
            ValueError: If document_id is empty
        """
        pass

    @abstractmethod
    def get_page(
        self,
        sort_field: str,
        order: Union[str, SortOrder],
        continuation_token: Optional[str] = None,
        page_size: int = 0,
    ) -> Page[T]:
        """
        Fetch one page of this kind's documents.

        Args:
            sort_field: Field to order by (stored name; "id" is accepted)
            order: ASC or DESC
            continuation_token: Token from the previous page, None for the first
            page_size: Items per page; <= 0 or above the maximum uses the maximum

        Returns:
            Page with items and the token for the next page

        Raises:
            InvalidContinuationTokenError: If the token is malformed or
                belongs to a different query
            ValueError: If the sort field or order is invalid
        """
        pass

    @abstractmethod
    def update(
        self,
        document_id: str,
        data: T,
        expected_etag: Optional[str] = None,
    ) -> Optional[Document[T]]:
        """
        Replace a document's payload, guarded by its concurrency token.

        createdAt and createdBy are carried over from the stored record;
        modifiedAt is set to now.

        Args:
            document_id: Id of the document to replace
            data: New payload (full replace)
            expected_etag: Token the caller last saw; when omitted the token
                read at the start of the update is used

        Returns:
            The merged document, or None if no document of this kind has the id

        Raises:
            ConflictError: If the stored token does not match
        """
        pass

    @abstractmethod
    def delete(self, document_id: str) -> bool:
        """
        Delete a document of this kind.

        Args:
            document_id: Document id

        Returns:
            True if a document was deleted, False if none matched

        Raises:
            ValueError: If document_id is empty
        """
        pass
