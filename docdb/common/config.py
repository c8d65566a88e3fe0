"""
Document database configuration.

Connection and collection settings validated with Pydantic at startup so a
misconfigured endpoint fails fast instead of on the first request.
All values come from environment variables (or a local .env file).
"""

from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DocumentDBSettings(BaseSettings):
    """
    Settings for the shared document database client and repositories.

    Field names match the environment variable names (case-insensitive).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Endpoint & credentials ===
    mongodb_uri: str = Field(
        ...,
        description="Connection string of the document database (credentials included)"
    )
    docdb_app_name: str = Field(
        default="docdb-workshop",
        description="Application name reported to the server"
    )

    # === Collection coordinates ===
    docdb_database: str = Field(
        default="workshop",
        min_length=1,
        description="Database name"
    )
    docdb_collection: str = Field(
        default="documents",
        min_length=1,
        description="Collection shared by every document kind"
    )

    # === Paging ===
    docdb_max_item_count: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum page size for paged queries (1-1000)"
    )

    # === Transport ===
    docdb_max_pool_size: int = Field(
        default=500,
        ge=1,
        description="Maximum connections in the driver pool"
    )
    docdb_server_selection_timeout_ms: int = Field(
        default=5000,
        ge=100,
        description="How long the driver waits for a usable server (ms)"
    )
    docdb_retry_writes: bool = Field(
        default=True,
        description="Let the driver transparently retry retryable writes once"
    )

    @field_validator("mongodb_uri")
    @classmethod
    def validate_uri_format(cls, v: str) -> str:
        """Basic connection string validation."""
        v = v.strip()
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("MONGODB_URI must start with mongodb:// or mongodb+srv://")
        return v

    def client_options(self) -> Dict[str, Any]:
        """Keyword arguments for MongoClient."""
        return {
            "appname": self.docdb_app_name,
            "maxPoolSize": self.docdb_max_pool_size,
            "serverSelectionTimeoutMS": self.docdb_server_selection_timeout_ms,
            "retryWrites": self.docdb_retry_writes,
            "uuidRepresentation": "standard",
        }

    def redacted_uri(self) -> str:
        """Connection string with credentials masked, safe for logs."""
        scheme, _, rest = self.mongodb_uri.partition("://")
        if "@" not in rest:
            return self.mongodb_uri
        return f"{scheme}://*****@{rest.split('@', 1)[1]}"


@lru_cache()
def get_settings() -> DocumentDBSettings:
    """
    Get cached settings instance.

    Settings are loaded once; call get_settings.cache_clear() after
    changing the environment (tests do this).
    """
    return DocumentDBSettings()


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> DocumentDBSettings:
    """Build settings from the environment, with explicit overrides taking precedence."""
    return DocumentDBSettings(**(overrides or {}))
