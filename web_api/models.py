"""
Pydantic models for Web API responses that are not documents.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    version: str
    timestamp: datetime
    database_error: Optional[str] = None


class ErrorResponse(BaseModel):
    """Body returned for mapped repository errors."""

    detail: str
    document_id: Optional[str] = None
    current_etag: Optional[str] = None
