"""Helper API routes.

Introspection of the generated schemas and a health check.
"""

from typing import Any

from fastapi import APIRouter, status

from crudbase.core.config import get_settings
from crudbase.core.logging import get_logger
from crudbase.infrastructure.api.dependencies import Models
from crudbase.infrastructure.api.schemas import CollectionSchemaResponse, HealthResponse

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/schemas",
    status_code=status.HTTP_200_OK,
    response_model=list[CollectionSchemaResponse],
    response_model_by_alias=True,
)
async def list_collection_schemas(models: Models) -> list[CollectionSchemaResponse]:
    """List the serialized document shape of every loaded collection."""
    return [
        CollectionSchemaResponse(
            name=model.name,
            json_schema=model.nested_schema_generator.generate_get_item_json_schema()["response"]["200"][
                "properties"
            ],
        )
        for model in models
    ]


@router.get(
    "/schemas/{collection_name}",
    status_code=status.HTTP_200_OK,
    responses={
        404: {"description": "Collection not found"},
    },
)
async def get_collection_schemas(collection_name: str, models: Models) -> dict[str, Any]:
    """Return every generated operation schema of a collection, keyed by operation id.

    Raises:
        CollectionNotFoundError: Mapped to 404 by the exception handlers.
    """
    model = models.get(collection_name)
    logger.debug("Generating operation schemas", collection_name=collection_name)
    return model.nested_schema_generator.generate_all()


@router.get(
    "/healthz",
    status_code=status.HTTP_200_OK,
    response_model=HealthResponse,
)
async def health_check(models: Models) -> HealthResponse:
    """Basic health check endpoint.

    Returns 200 when the collection models are loaded.
    """
    settings = get_settings()
    return HealthResponse(
        status="OK",
        name=settings.app_name,
        version=settings.app_version,
        collections=models.names,
    )
