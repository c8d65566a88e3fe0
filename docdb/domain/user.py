"""User payload stored under the "User" kind."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

USER_KIND = "User"


class User(BaseModel):
    """A workshop user; stored field names keep the workshop's PascalCase."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., alias="Name", min_length=1, description="Full name")
    email: Optional[str] = Field(default=None, alias="Email", description="Contact email")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v
