"""API Schemas for request/response validation."""

from crudbase.infrastructure.api.schemas.helpers_schemas import (
    CollectionSchemaResponse,
    HealthResponse,
)

__all__ = [
    "CollectionSchemaResponse",
    "HealthResponse",
]
