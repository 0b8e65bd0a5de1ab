"""
Main FastAPI application factory.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .dependencies import get_logger, get_supabase_client, reset_dependencies
from .routes import assets, availability, health, ical, pricing, reservations
from .models import ErrorResponse, SyncResponse
from ..utils.errors import (
    ConfigurationError,
    ConflictError,
    EmptyFeedError,
    FetchTimeoutError,
    HttpError,
    NotFoundError,
    RentalEngineError,
    StoreError,
    ValidationError,
)
from ..utils.models import Reservation

# Most specific first; the first isinstance match wins
ERROR_STATUS = (
    (ValidationError, 422, "VALIDATION_ERROR"),
    (ConflictError, 409, "CONFLICT"),
    (NotFoundError, 404, "NOT_FOUND"),
    (ConfigurationError, 400, "CONFIGURATION_ERROR"),
    (FetchTimeoutError, 504, "FETCH_TIMEOUT"),
    (HttpError, 502, "FEED_HTTP_ERROR"),
    (StoreError, 500, "STORE_ERROR"),
)


def _error_details(exc: RentalEngineError) -> dict:
    details = {"error_type": type(exc).__name__}
    if isinstance(exc, ConflictError):
        details["conflicting"] = [
            r.to_dict() if isinstance(r, Reservation) else r for r in exc.conflicting
        ]
        details["date_ranges"] = [
            f"{r.interval.start.isoformat()} to {r.interval.end.isoformat()}"
            for r in exc.conflicting if isinstance(r, Reservation)
        ]
    if isinstance(exc, HttpError) and exc.status_code is not None:
        details["upstream_status"] = exc.status_code
    return details


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger = get_logger()
    logger.info("Starting FastAPI application", environment=settings.environment, version=settings.app_version)

    try:
        get_supabase_client()
        logger.info("Services initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize services", error=str(e))
        raise

    yield

    logger.info("Shutting down FastAPI application")
    reset_dependencies()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description=settings.app_description,
        version=settings.app_version,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(EmptyFeedError)
    async def empty_feed_handler(request: Request, exc: EmptyFeedError):
        """Nothing to import is a distinct, non-fatal outcome."""
        return JSONResponse(
            status_code=200,
            content=SyncResponse(success=True, message=str(exc), status="empty").model_dump(mode="json")
        )

    @app.exception_handler(RentalEngineError)
    async def engine_error_handler(request: Request, exc: RentalEngineError):
        status_code, error_code = 500, "ENGINE_ERROR"
        for error_type, code, name in ERROR_STATUS:
            if isinstance(exc, error_type):
                status_code, error_code = code, name
                break
        get_logger().warning("Request failed", path=request.url.path, error_code=error_code, error=str(exc))
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                success=False,
                message=str(exc),
                error_code=error_code,
                details=_error_details(exc)
            ).model_dump(mode="json")
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        get_logger().error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                success=False,
                message="Internal server error",
                error_code="INTERNAL_ERROR",
                details={"error": str(exc)}
            ).model_dump(mode="json")
        )

    # Include routers with versioning
    for module in (health, availability, pricing, reservations, assets, ical):
        app.include_router(module.router, prefix=f"{settings.api_prefix}/{settings.api_version}")

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "message": "Rental availability API is running",
            "version": settings.app_version,
            "environment": settings.environment,
            "docs": f"{settings.api_prefix}/docs"
        }

    return app
