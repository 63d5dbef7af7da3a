"""API route handlers."""

from crudbase.infrastructure.api.routes.helpers_router import router as helpers_router

__all__ = ["helpers_router"]
