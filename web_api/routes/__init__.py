"""
Web API route modules.

DOCUMENT_KINDS maps every exposed kind to its payload model; the app builds
one repository per entry at startup.
"""

from docdb.domain import USER_KIND, User

from .documents import build_document_router
from .users import router as users_router

DOCUMENT_KINDS = {
    USER_KIND: User,
}

__all__ = [
    "DOCUMENT_KINDS",
    "build_document_router",
    "users_router",
]
