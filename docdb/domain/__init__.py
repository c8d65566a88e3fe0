"""
Domain payloads and the document envelope.

Public API:
- Document: generic envelope (metadata + typed payload)
- Principal: creator identity snapshot
- User / USER_KIND: the workshop's user payload and its kind tag
"""

from .documents import (
    Document,
    Principal,
    RESERVED_FIELDS,
    document_from_record,
    utc_now,
)
from .user import USER_KIND, User

__all__ = [
    "Document",
    "Principal",
    "RESERVED_FIELDS",
    "document_from_record",
    "utc_now",
    "User",
    "USER_KIND",
]
