"""FastAPI dependencies for collection models.

The models are built once at startup and stored on ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from crudbase.domain.services.model_loader import ModelRegistry


def get_models(request: Request) -> ModelRegistry:
    """Return the collection models loaded at startup.

    Raises:
        HTTPException: 503 if the application has not finished loading.
    """
    models = getattr(request.app.state, "models", None)
    if models is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Collection models are not loaded",
        )
    return models


# Type alias for dependency injection
Models = Annotated[ModelRegistry, Depends(get_models)]
