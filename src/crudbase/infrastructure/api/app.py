"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with all middleware, routes,
and lifecycle handlers.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crudbase.core.config import get_settings
from crudbase.core.exceptions import CollectionNotFoundError, CrudBaseError, DefinitionError
from crudbase.core.logging import configure_logging, get_logger
from crudbase.domain.services.model_loader import ModelLoader

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Loads every collection definition and builds the models before the
    application accepts requests. A single invalid definition aborts startup.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings = get_settings()

    # Configure logging
    configure_logging(settings)
    logger = get_logger(__name__)

    # Startup
    logger.info(
        "Starting CrudBase",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    loader = ModelLoader(
        enable_limit_constraint=settings.crud_limit_constraint_enabled,
        max_limit=settings.crud_max_limit,
    )
    try:
        app.state.models = loader.load_folder(settings.collection_definition_folder)
    except DefinitionError as e:
        logger.error(
            "Failed to load collection definitions",
            path=settings.collection_definition_folder,
            error=str(e),
        )
        raise
    logger.info("Collection models ready", collections=app.state.models.names)

    yield

    # Shutdown
    logger.info("Shutting down CrudBase")
    app.state.models = None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Configuration-driven CRUD service",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register API routes
    register_routes(app)

    # Register exception handlers
    register_exception_handlers(app)

    # Register middleware
    register_middleware(app)

    return app


def register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
    """
    from crudbase.infrastructure.api.routes import helpers_router

    settings = get_settings()

    app.include_router(helpers_router, prefix=settings.helpers_prefix.rstrip("/"), tags=["helpers"])


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(CollectionNotFoundError)
    async def collection_not_found_handler(request: Request, exc: CollectionNotFoundError):
        """Unknown collections are a missing resource."""
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)})

    @app.exception_handler(CrudBaseError)
    async def crudbase_error_handler(request: Request, exc: CrudBaseError):
        """Domain errors are client errors."""
        logger.warning(
            "Request rejected",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "detail": str(exc) if get_settings().debug else "An unexpected error occurred",
            },
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
    """

    @app.middleware("http")
    async def logging_middleware(request, call_next):
        """Middleware to log all requests and add correlation ID."""
        import uuid

        from crudbase.core.logging import bind_correlation_id, clear_context, get_logger

        logger = get_logger(__name__)

        # Generate or extract correlation ID
        correlation_id = request.headers.get("X-Correlation-ID", f"cid_{uuid.uuid4().hex[:12]}")
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
            correlation_id=correlation_id,
        )

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                correlation_id=correlation_id,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            # Clear context to prevent leakage
            clear_context()


# Create the application instance
app = create_app()
