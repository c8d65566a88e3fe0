"""
FastAPI dependencies shared by the document routes.

Repositories are built once in the application lifespan and kept on
app.state; routes receive them through these dependencies instead of
reaching for a module-level client.
"""

import uuid
from typing import Callable, Optional

from fastapi import Header, HTTPException, Request

from docdb.common.database import DocumentClient
from docdb.common.logger import ContextLogger, get_logger
from docdb.common.repositories import DocumentRepository
from docdb.domain import Principal

REQUEST_ID_HEADER = "X-Request-Id"


def get_document_client(request: Request) -> DocumentClient:
    """Shared client created at startup."""
    return request.app.state.document_client


def repository_dependency(kind: str) -> Callable[[Request], DocumentRepository]:
    """Build a dependency that resolves the repository registered for kind."""

    def get_repository(request: Request) -> DocumentRepository:
        repositories = getattr(request.app.state, "repositories", {})
        repository = repositories.get(kind)
        if repository is None:
            raise HTTPException(status_code=503, detail=f"Repository for {kind} is not ready")
        return repository

    return get_repository


def request_logger_dependency(kind: str) -> Callable[..., ContextLogger]:
    """
    Build a dependency giving each request a logger tagged with kind and request id.

    The id comes from the X-Request-Id header when the caller sends one,
    otherwise a fresh one is generated.
    """

    def get_request_logger(
        x_request_id: Optional[str] = Header(default=None),
    ) -> ContextLogger:
        request_id = x_request_id or uuid.uuid4().hex
        return get_logger("web_api.routes.documents", kind=kind, request_id=request_id)

    return get_request_logger


def get_principal(
    x_principal_id: Optional[str] = Header(default=None),
    x_principal_name: Optional[str] = Header(default=None),
    x_principal_email: Optional[str] = Header(default=None),
) -> Optional[Principal]:
    """
    Creating identity taken from X-Principal-* headers.

    Returns None when none of the headers is present.
    """
    if not any((x_principal_id, x_principal_name, x_principal_email)):
        return None
    return Principal(id=x_principal_id, name=x_principal_name, email=x_principal_email)
