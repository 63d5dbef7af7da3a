"""Helper route schemas.

Pydantic schemas for the introspection and health endpoints.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CollectionSchemaResponse(BaseModel):
    """Serialized document shape of one collection."""

    name: str
    json_schema: dict[str, Any] = Field(
        ...,
        serialization_alias="schema",
        description="Properties of a single stored document",
    )

    model_config = ConfigDict(populate_by_name=True)


class HealthResponse(BaseModel):
    """Service health response."""

    status: str = "OK"
    name: str
    version: str
    collections: list[str] = Field(default_factory=list, description="Loaded collection names")
