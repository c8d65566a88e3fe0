"""
FastAPI application for the document database workshop.

Exposes one router per document kind over a single shared collection.
The database client is created in the lifespan handler, kept on app.state
and closed at shutdown; repositories reach routes through dependencies.

Run locally:
    uvicorn web_api.app:app --reload
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from docdb.common.config import get_settings
from docdb.common.database import DocumentClient
from docdb.common.errors import (
    ConflictError,
    InvalidContinuationTokenError,
    ServiceError,
)
from docdb.common.logger import setup_logging
from docdb.version import __version__

from .config import ApiSettings, validate_config_on_startup
from .dependencies import get_document_client
from .models import ErrorResponse, HealthResponse
from .routes import DOCUMENT_KINDS, users_router
from .routes.documents import CONTINUATION_HEADER, HAS_MORE_HEADER

logger = logging.getLogger(__name__)


def _register_exception_handlers(app: FastAPI) -> None:
    """Map repository errors to HTTP status codes."""

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        logger.info(f"Conflict on {request.url.path}: {exc}")
        body = ErrorResponse(
            detail=str(exc),
            document_id=exc.document_id,
            current_etag=exc.current_etag,
        )
        return JSONResponse(status_code=409, content=body.model_dump(exclude_none=True))

    @app.exception_handler(InvalidContinuationTokenError)
    async def invalid_token_handler(
        request: Request, exc: InvalidContinuationTokenError
    ) -> JSONResponse:
        logger.info(f"Rejected continuation token on {request.url.path}: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        logger.error(f"Database unavailable for {request.url.path}: {exc}")
        return JSONResponse(
            status_code=503,
            content={"detail": "Document database unavailable", "operation": exc.operation},
        )


def create_app(
    document_client: Optional[DocumentClient] = None,
    api_settings: Optional[ApiSettings] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        document_client: Pre-built client (tests inject one backed by an
            in-memory server); when omitted one is created from the
            environment at startup and closed at shutdown
        api_settings: HTTP-level settings; loaded from the environment
            when omitted

    Returns:
        Configured FastAPI instance
    """
    settings = api_settings or validate_config_on_startup()
    setup_logging(settings.log_level, settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = document_client or DocumentClient(get_settings())
        app.state.document_client = client
        app.state.repositories = {}

        for kind, model in DOCUMENT_KINDS.items():
            repository = client.repository(kind, model)
            try:
                repository.ensure_indexes()
            except ServiceError as e:
                logger.warning(f"Starting without indexes for {kind}: {e}")
            app.state.repositories[kind] = repository

        logger.info(f"Document API ready: kinds={sorted(app.state.repositories)}")
        try:
            yield
        finally:
            client.close()
            app.state.repositories = {}

    app = FastAPI(
        title="Document Database Workshop API",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_minimum_size)

    if settings.cors_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[CONTINUATION_HEADER, HAS_MORE_HEADER, "ETag", "Location"],
        )

    _register_exception_handlers(app)

    app.include_router(users_router)

    @app.get("/health", response_model=HealthResponse)
    def health_check(client: DocumentClient = Depends(get_document_client)):
        """
        Health check endpoint for container orchestration.

        Pings the database; answers 503 when it cannot be reached.
        """
        try:
            client.ping()
        except ServiceError as e:
            body = HealthResponse(
                status="unhealthy",
                database="unreachable",
                version=__version__,
                timestamp=datetime.now(timezone.utc),
                database_error=str(e),
            )
            return JSONResponse(status_code=503, content=body.model_dump(mode="json"))

        return HealthResponse(
            status="healthy",
            database="connected",
            version=__version__,
            timestamp=datetime.now(timezone.utc),
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
