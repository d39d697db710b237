"""
Ornot Backend Application

Liquid-democracy polling: email-verified identities, topics with plans,
weighted votes and memoized tallies.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1 import router as api_v1_router
from core.config import settings
from core.events import create_start_app_handler, create_stop_app_handler
from core.exceptions import (
    CorruptData,
    NotFound,
    StoreTimeout,
    StoreUnavailable,
    Unauthorized,
    ValidationError,
)
from core.logging import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    await create_start_app_handler(app)()
    yield
    # Shutdown
    await create_stop_app_handler(app)()


def _error(status_code: int, detail: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


def register_exception_handlers(application: FastAPI) -> None:
    """Translate the service error taxonomy into HTTP responses."""

    @application.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
        logger.error("store_unavailable", error=str(exc), path=request.url.path)
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Storage is temporarily unavailable")

    @application.exception_handler(StoreTimeout)
    async def store_timeout_handler(request: Request, exc: StoreTimeout) -> JSONResponse:
        logger.error("store_timeout", error=str(exc), path=request.url.path)
        return _error(status.HTTP_504_GATEWAY_TIMEOUT, "Storage did not respond in time")

    @application.exception_handler(CorruptData)
    async def corrupt_data_handler(request: Request, exc: CorruptData) -> JSONResponse:
        logger.error("corrupt_data", key=exc.key, reason=exc.reason, path=request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "A stored record could not be read")

    @application.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @application.exception_handler(Unauthorized)
    async def unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, str(exc), headers={"WWW-Authenticate": "Bearer"})

    @application.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        # literal: the 422 constant name differs across Starlette releases
        return _error(422, str(exc))

    # Global handler so unexpected errors still return JSON through the CORS middleware
    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An internal server error occurred. Please try again later.",
                "error_type": type(exc).__name__ if settings.DEBUG else "InternalServerError",
            },
        )


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.APP_ENV, settings.DEBUG)

    application = FastAPI(
        title=settings.APP_NAME,
        description="Liquid-democracy polling backend",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    application.include_router(api_v1_router, prefix="/api/v1")
    register_exception_handlers(application)

    return application


app = create_application()


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for load balancers and monitoring."""
    return {"status": "healthy", "service": "ornot-api"}
