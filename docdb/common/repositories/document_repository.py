"""
Document Repository

Typed CRUD and keyset pagination for one document kind inside a collection
shared by several kinds. Works against any server speaking the MongoDB wire
protocol (Atlas, Cosmos DB for MongoDB, self-hosted).
"""

import uuid
from typing import Any, Dict, Optional, Type, Union

from pymongo.collection import Collection

from docdb.common.error_handling import service_operation
from docdb.common.errors import ConflictError
from docdb.common.logger import get_logger
from docdb.domain.documents import (
    CREATED_AT_FIELD,
    CREATED_BY_FIELD,
    Document,
    ETAG_FIELD,
    ID_FIELD,
    Principal,
    RESERVED_FIELDS,
    TYPE_FIELD,
    document_from_record,
    payload_field_aliases,
    stored_field_names,
    utc_now,
)

from .base import DocumentRepositoryInterface, Page, SortOrder, T
from .pagination import (
    ContinuationToken,
    lookup_value,
    resolve_sort_field,
    resume_filter,
    sort_spec,
)


def new_etag() -> str:
    """Fresh opaque concurrency token."""
    return uuid.uuid4().hex


class DocumentRepository(DocumentRepositoryInterface[T]):
    """
    Repository for one kind in a shared, kind-partitioned collection.

    Connection Management:
    - Receives a collection handle from the shared DocumentClient
    - Never opens or closes connections itself
    - Safe to use from many threads; holds no mutable state

    Error Handling:
    - Driver errors become ServiceError (original exception chained)
    - Concurrency-token mismatches become ConflictError
    - Not-found is a None/False result, never an exception
    """

    def __init__(
        self,
        collection: Collection,
        kind: str,
        model: Type[T],
        max_item_count: int = 100,
    ):
        """
        Initialize the repository.

        Args:
            collection: Collection shared by every kind
            kind: Kind tag written to every document (partition key value)
            model: Pydantic model of the payload
            max_item_count: Upper bound for page sizes

        Raises:
            ValueError: If kind is empty, max_item_count is not positive, or
                the payload model declares a reserved field name
        """
        if not kind:
            raise ValueError("Document kind is required")
        if max_item_count < 1:
            raise ValueError("max_item_count must be positive")

        clashes = stored_field_names(model) & RESERVED_FIELDS
        if clashes:
            raise ValueError(
                f"Payload model {model.__name__} uses reserved field names: {sorted(clashes)}"
            )

        self._collection = collection
        self.kind = kind
        self.model = model
        self.max_item_count = max_item_count
        self._sort_aliases = payload_field_aliases(model)
        self.logger = get_logger(__name__, kind=kind)

    def _key(self, document_id: str) -> Dict[str, Any]:
        """Point-lookup filter: id within this kind's partition."""
        return {ID_FIELD: document_id, TYPE_FIELD: self.kind}

    def _page_size(self, page_size: int) -> int:
        if page_size <= 0 or page_size > self.max_item_count:
            return self.max_item_count
        return page_size

    @service_operation("add")
    def add(
        self,
        data: T,
        created_by: Optional[Principal] = None,
        document_id: Optional[str] = None,
    ) -> Document[T]:
        """Insert a new document; type and createdAt are always stamped here."""
        document = Document[self.model](
            id=document_id or str(uuid.uuid4()),
            type=self.kind,
            created_at=utc_now(),
            created_by=created_by,
            etag=new_etag(),
            data=data,
        )
        self._collection.insert_one(document.to_record())
        self.logger.debug(f"Added document {document.id}")
        return document

    @service_operation("get_by_id")
    def get_by_id(self, document_id: str) -> Optional[Document[T]]:
        """Find a single document of this kind."""
        if not document_id:
            raise ValueError("document_id must be non-empty")

        record = self._collection.find_one(self._key(document_id))
        if record is None:
            return None
        return document_from_record(record, self.model)

    @service_operation("get_page")
    def get_page(
        self,
        sort_field: str,
        order: Union[str, SortOrder],
        continuation_token: Optional[str] = None,
        page_size: int = 0,
    ) -> Page[T]:
        """
        Fetch one page, resuming after continuation_token.

        Reads one extra document to learn whether another page exists, so
        the last page never hands out a token.
        """
        field_name = resolve_sort_field(sort_field, self._sort_aliases)
        sort_order = SortOrder.parse(order)
        limit = self._page_size(page_size)

        query: Dict[str, Any] = {TYPE_FIELD: self.kind}
        if continuation_token:
            token = ContinuationToken.decode(continuation_token)
            token.check_matches(self.kind, field_name, sort_order)
            query = {"$and": [query, resume_filter(token)]}

        cursor = (
            self._collection.find(query)
            .sort(sort_spec(field_name, sort_order))
            .limit(limit + 1)
        )
        records = list(cursor)

        next_token = None
        if len(records) > limit:
            records = records[:limit]
            last = records[-1]
            next_token = ContinuationToken(
                kind=self.kind,
                sort_field=field_name,
                order=sort_order,
                last_value=lookup_value(last, field_name),
                last_id=last[ID_FIELD],
            ).encode()

        self.logger.debug(
            f"Page of {len(records)} by {field_name} {sort_order.value} "
            f"(has_more={next_token is not None})"
        )
        return Page(
            items=[document_from_record(r, self.model) for r in records],
            continuation_token=next_token,
        )

    @service_operation("update")
    def update(
        self,
        document_id: str,
        data: T,
        expected_etag: Optional[str] = None,
    ) -> Optional[Document[T]]:
        """
        Read-then-conditional-replace.

        The replace only matches while the stored etag still equals the one
        read, so a concurrent writer in between makes this call fail with
        ConflictError instead of overwriting their change.
        """
        if not document_id:
            raise ValueError("document_id must be non-empty")

        current = self._collection.find_one(self._key(document_id))
        if current is None:
            return None

        current_etag = current.get(ETAG_FIELD)
        if expected_etag is not None and expected_etag != current_etag:
            raise ConflictError(document_id, expected_etag, current_etag)

        document = Document[self.model](
            id=document_id,
            type=self.kind,
            created_at=current[CREATED_AT_FIELD],
            created_by=current.get(CREATED_BY_FIELD),
            modified_at=utc_now(),
            etag=new_etag(),
            data=data,
        )

        precondition = dict(self._key(document_id))
        precondition[ETAG_FIELD] = current_etag
        result = self._collection.replace_one(precondition, document.to_record())

        if result.matched_count == 0:
            self.logger.warning(f"Concurrent update detected for {document_id}")
            raise ConflictError(document_id, current_etag)

        self.logger.debug(f"Updated document {document_id}")
        return document

    @service_operation("delete")
    def delete(self, document_id: str) -> bool:
        """Delete by id within this kind; no write when nothing matches."""
        if not document_id:
            raise ValueError("document_id must be non-empty")

        found = self._collection.find_one(self._key(document_id), {ID_FIELD: 1})
        if found is None:
            return False

        result = self._collection.delete_one(self._key(document_id))
        self.logger.debug(f"Deleted document {document_id} (count={result.deleted_count})")
        return result.deleted_count == 1

    @service_operation("ensure_indexes", critical=False)
    def ensure_indexes(self) -> None:
        """
        Create the indexes every kind relies on.

        - (type, _id): point lookups and deletes within a partition
        - (type, createdAt): the default listing order
        """
        self._collection.create_index(
            [(TYPE_FIELD, 1), (ID_FIELD, 1)], name="type_id"
        )
        self._collection.create_index(
            [(TYPE_FIELD, 1), (CREATED_AT_FIELD, -1)], name="type_createdAt"
        )
        self.logger.info("Indexes ensured")
