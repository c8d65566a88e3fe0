"""
Document database client lifecycle.

One DocumentClient wraps one pooled, thread-safe MongoClient. Build it once
at startup, hand it (or the repositories it creates) to whatever needs the
database, and close it once at shutdown.
"""

import logging
from typing import Any, Dict, Optional, Type

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import OperationFailure, PyMongoError

from .config import DocumentDBSettings
from .error_handling import service_operation
from .repositories.base import T
from .repositories.document_repository import DocumentRepository

logger = logging.getLogger(__name__)


class DocumentClient:
    """
    Shared connection handle for every repository in the process.

    Connection Management:
    - MongoClient is created on first use (or injected, e.g. in tests)
    - The driver pools connections internally; never build one per request
    - close() releases the pool; the instance can reconnect afterwards
    """

    def __init__(self, settings: DocumentDBSettings, client: Optional[MongoClient] = None):
        """
        Initialize the client.

        Args:
            settings: Validated connection settings
            client: Pre-built MongoClient (tests inject an in-memory one)
        """
        self.settings = settings
        self._client: Optional[MongoClient] = client
        self._owns_client = client is None

    def connect(self) -> MongoClient:
        """Create the MongoClient if needed and return it."""
        if self._client is None:
            self._client = MongoClient(self.settings.mongodb_uri, **self.settings.client_options())
            self._owns_client = True
            logger.info(
                f"Document client created: {self.settings.redacted_uri()} "
                f"({self.settings.docdb_database}.{self.settings.docdb_collection})"
            )
        return self._client

    def close(self) -> None:
        """Close the MongoClient (only if this instance created it)."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
            logger.info("Document client closed")

    def __enter__(self) -> "DocumentClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    @property
    def client(self) -> MongoClient:
        return self.connect()

    def database(self, name: Optional[str] = None) -> Database:
        """Database by name (defaults to the configured one)."""
        return self.client[name or self.settings.docdb_database]

    def collection(self, name: Optional[str] = None, database: Optional[str] = None) -> Collection:
        """Collection by name (defaults to the configured shared collection)."""
        return self.database(database)[name or self.settings.docdb_collection]

    def repository(self, kind: str, model: Type[T]) -> DocumentRepository[T]:
        """Repository for one kind in the shared collection."""
        return DocumentRepository(
            self.collection(),
            kind=kind,
            model=model,
            max_item_count=self.settings.docdb_max_item_count,
        )

    @service_operation("ping", critical=False)
    def ping(self) -> bool:
        """Round trip to the server; raises ServiceError when unreachable."""
        self.client.admin.command("ping")
        return True


def last_request_charge(database: Database) -> Optional[float]:
    """
    Request units charged for the previous operation on this connection.

    Only Cosmos DB reports charges (via getLastRequestStatistics); other
    servers reject the command and None is returned.
    """
    try:
        stats: Dict[str, Any] = database.command({"getLastRequestStatistics": 1})
    except OperationFailure as e:
        logger.debug(f"Request charge unavailable (code={e.code})")
        return None
    except PyMongoError as e:
        logger.warning(f"Request charge lookup failed: {e}")
        return None
    charge = stats.get("RequestCharge")
    return float(charge) if charge is not None else None
