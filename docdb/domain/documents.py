"""
Document envelope shared by every document kind.

Several logical kinds live in one physical collection. Each stored record
carries the same metadata (id, kind tag, timestamps, creator snapshot,
concurrency token) next to the flattened fields of a typed payload model.
The envelope is generic over the payload instead of using inheritance, so
any pydantic model can be stored under any kind tag.
"""

from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T", bound=BaseModel)

# Stored field names owned by the envelope
ID_FIELD = "_id"
TYPE_FIELD = "type"
CREATED_AT_FIELD = "createdAt"
MODIFIED_AT_FIELD = "modifiedAt"
CREATED_BY_FIELD = "createdBy"
ETAG_FIELD = "_etag"

RESERVED_FIELDS: FrozenSet[str] = frozenset({
    ID_FIELD,
    "id",
    TYPE_FIELD,
    CREATED_AT_FIELD,
    MODIFIED_AT_FIELD,
    CREATED_BY_FIELD,
    ETAG_FIELD,
    "etag",
})


def utc_now() -> datetime:
    """Current UTC time truncated to the millisecond precision the server stores."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # The driver hands back naive datetimes unless the client is tz-aware
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Principal(BaseModel):
    """Snapshot of the identity that created a document (copied by value)."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class Document(BaseModel, Generic[T]):
    """
    Stored document: envelope metadata plus a typed payload.

    Attributes:
        id: Primary key, unique within the collection
        type: Kind tag, doubles as the partition key
        created_at: Set once on creation
        modified_at: Set on every update, None until the first one
        created_by: Creator snapshot, preserved across updates
        etag: Opaque concurrency token, changes on every write
        data: Typed payload
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str
    created_at: datetime = Field(alias=CREATED_AT_FIELD)
    modified_at: Optional[datetime] = Field(default=None, alias=MODIFIED_AT_FIELD)
    created_by: Optional[Principal] = Field(default=None, alias=CREATED_BY_FIELD)
    etag: str
    data: T

    @field_validator("created_at", "modified_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    def to_record(self) -> Dict[str, Any]:
        """Flatten into the stored shape."""
        record: Dict[str, Any] = dict(self.data.model_dump(by_alias=True, exclude_none=True))
        record.update({
            ID_FIELD: self.id,
            TYPE_FIELD: self.type,
            CREATED_AT_FIELD: self.created_at,
            ETAG_FIELD: self.etag,
        })
        if self.modified_at is not None:
            record[MODIFIED_AT_FIELD] = self.modified_at
        if self.created_by is not None:
            record[CREATED_BY_FIELD] = self.created_by.model_dump(exclude_none=True)
        return record

    def flatten(self) -> Dict[str, Any]:
        """JSON-ready view: metadata and payload fields side by side."""
        view: Dict[str, Any] = dict(self.data.model_dump(mode="json", by_alias=True))
        view.update({
            "id": self.id,
            "type": self.type,
            CREATED_AT_FIELD: self.created_at.isoformat(),
            MODIFIED_AT_FIELD: self.modified_at.isoformat() if self.modified_at else None,
            CREATED_BY_FIELD: self.created_by.model_dump() if self.created_by else None,
            "etag": self.etag,
        })
        return view


def payload_from_record(record: Dict[str, Any], model: Type[T]) -> T:
    """Extract the typed payload from a stored record."""
    payload = {k: v for k, v in record.items() if k not in RESERVED_FIELDS}
    return model.model_validate(payload)


def document_from_record(record: Dict[str, Any], model: Type[T]) -> Document[T]:
    """Rebuild the envelope from a stored record."""
    return Document[model](
        id=record[ID_FIELD],
        type=record[TYPE_FIELD],
        created_at=record[CREATED_AT_FIELD],
        modified_at=record.get(MODIFIED_AT_FIELD),
        created_by=record.get(CREATED_BY_FIELD),
        etag=record.get(ETAG_FIELD) or "",
        data=payload_from_record(record, model),
    )


def stored_field_names(model: Type[BaseModel]) -> FrozenSet[str]:
    """Names a payload model's fields take in the stored record."""
    return frozenset(
        (info.alias or name) for name, info in model.model_fields.items()
    )


def payload_field_aliases(model: Type[BaseModel]) -> Dict[str, str]:
    """Attribute name -> stored name, for payload fields stored under an alias."""
    return {
        name: info.alias
        for name, info in model.model_fields.items()
        if info.alias and info.alias != name
    }
