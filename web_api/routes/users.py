"""
User routes: the generic document surface bound to the User kind.
"""

from docdb.domain import USER_KIND, User

from .documents import build_document_router

router = build_document_router(USER_KIND, User)
