"""
Generic document routes.

build_document_router(kind, model) produces the same REST surface for any
document kind:
- GET /api/{kind}/{sort_field}/{order} - One page, continuation via headers
- GET /api/{kind}/GetById/{document_id} - Point lookup
- POST /api/{kind} - Create
- PATCH /api/{kind} - Replace payload, guarded by the concurrency token
- DELETE /api/{kind}/{document_id} - Delete

Missing documents answer 204 rather than 404.
"""

from typing import Optional, Type

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, create_model

from docdb.common.errors import InvalidContinuationTokenError
from docdb.common.logger import ContextLogger
from docdb.common.repositories import DocumentRepository
from docdb.domain import Principal

from ..dependencies import get_principal, repository_dependency, request_logger_dependency

CONTINUATION_HEADER = "X-RequestContinuationToken"
HAS_MORE_HEADER = "X-HasMoreResults"


def quote_etag(etag: str) -> str:
    """ETag header value for a stored token."""
    return f'"{etag}"'


def unquote_etag(value: Optional[str]) -> Optional[str]:
    """
    Token carried by an If-Match header.

    Accepts quoted, unquoted and weak ("W/") forms; "*" means any version.
    """
    if value is None:
        return None
    value = value.strip()
    if value.startswith("W/"):
        value = value[2:]
    value = value.strip('"')
    if not value or value == "*":
        return None
    return value


def update_model_for(model: Type[BaseModel]) -> Type[BaseModel]:
    """Request body for PATCH: the payload plus id and an optional etag."""
    return create_model(
        f"{model.__name__}Update",
        __base__=model,
        id=(str, Field(..., min_length=1, description="Id of the document to replace")),
        etag=(Optional[str], Field(default=None, description="Concurrency token last seen")),
    )


def build_document_router(kind: str, model: Type[BaseModel]) -> APIRouter:
    """
    Build the router for one document kind.

    Args:
        kind: Kind tag, also the URL segment after /api/
        model: Payload model accepted on POST and (extended) on PATCH

    Returns:
        APIRouter ready for app.include_router
    """
    router = APIRouter(prefix=f"/api/{kind}", tags=[kind])
    get_repository = repository_dependency(kind)
    get_request_logger = request_logger_dependency(kind)
    update_model = update_model_for(model)

    # Declared before the list route: both match two path segments
    @router.get(
        "/GetById/{document_id}",
        summary=f"Get a {kind} by id",
        responses={204: {"description": "No document with this id"}},
    )
    def get_by_id(
        document_id: str,
        repository: DocumentRepository = Depends(get_repository),
    ):
        document = repository.get_by_id(document_id)
        if document is None:
            return Response(status_code=204)
        return JSONResponse(
            content=document.flatten(),
            headers={"ETag": quote_etag(document.etag)},
        )

    @router.get(
        "/{sort_field}/{order}",
        summary=f"List {kind} documents one page at a time",
        responses={204: {"description": "Empty page"}},
    )
    def get_page(
        sort_field: str,
        order: str,
        page_size: int = Query(default=0, alias="pageSize", description="Items per page"),
        continuation_token: Optional[str] = Header(default=None, alias=CONTINUATION_HEADER),
        repository: DocumentRepository = Depends(get_repository),
        log: ContextLogger = Depends(get_request_logger),
    ):
        """
        One page ordered by sort_field.

        Pass the X-RequestContinuationToken response header back on the
        next request until X-HasMoreResults is false.
        """
        try:
            page = repository.get_page(
                sort_field,
                order,
                continuation_token=continuation_token or None,
                page_size=page_size,
            )
        except InvalidContinuationTokenError:
            raise
        except ValueError as e:
            log.info(f"Rejected list request: {e}")
            raise HTTPException(status_code=400, detail=str(e))

        log.debug(f"Listed {len(page.items)} by {sort_field} {order} (has_more={page.has_more})")
        headers = {HAS_MORE_HEADER: "true" if page.has_more else "false"}
        if page.continuation_token:
            headers[CONTINUATION_HEADER] = page.continuation_token

        if not page.items:
            return Response(status_code=204, headers=headers)

        return JSONResponse(
            content=[document.flatten() for document in page.items],
            headers=headers,
        )

    @router.post(
        "",
        status_code=201,
        summary=f"Create a {kind}",
    )
    def create(
        payload: model,
        principal: Optional[Principal] = Depends(get_principal),
        repository: DocumentRepository = Depends(get_repository),
        log: ContextLogger = Depends(get_request_logger),
    ):
        document = repository.add(payload, created_by=principal)
        log.info(f"Created {document.id}")
        return JSONResponse(
            status_code=201,
            content=document.flatten(),
            headers={
                "Location": f"/api/{kind}/GetById/{document.id}",
                "ETag": quote_etag(document.etag),
            },
        )

    @router.patch(
        "",
        summary=f"Replace a {kind}",
        responses={
            204: {"description": "No document with this id"},
            409: {"description": "Concurrency token mismatch"},
        },
    )
    def update(
        body: update_model,
        if_match: Optional[str] = Header(default=None, alias="If-Match"),
        repository: DocumentRepository = Depends(get_repository),
        log: ContextLogger = Depends(get_request_logger),
    ):
        """
        Full replace of the payload.

        The concurrency token comes from If-Match, or from the body's etag
        when the header is absent. Without either, the token read at the
        start of the update still guards against concurrent writers.
        """
        expected_etag = unquote_etag(if_match) or body.etag
        payload = model.model_validate(
            body.model_dump(by_alias=True, exclude={"id", "etag"})
        )

        document = repository.update(body.id, payload, expected_etag=expected_etag)
        if document is None:
            return Response(status_code=204)

        log.info(f"Updated {document.id}")
        return JSONResponse(
            content=document.flatten(),
            headers={"ETag": quote_etag(document.etag)},
        )

    @router.delete(
        "/{document_id}",
        summary=f"Delete a {kind}",
        responses={204: {"description": "No document with this id"}},
    )
    def delete(
        document_id: str,
        repository: DocumentRepository = Depends(get_repository),
        log: ContextLogger = Depends(get_request_logger),
    ):
        if not repository.delete(document_id):
            return Response(status_code=204)
        log.info(f"Deleted {document_id}")
        return Response(status_code=200)

    return router
