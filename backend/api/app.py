"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import get_settings as get_app_settings
from shared.database import init_db
from shared.exceptions import ConfigurationError, HubError, InternalError

from .config import get_settings
from .routes import health, users
from modules.auth.routes import router as auth_router
from modules.preferences.routes import router as preferences_router

logger = logging.getLogger(__name__)


def check_required_settings() -> None:
    """
    Refuse to run without a token-signing secret.

    Raises:
        ConfigurationError: If JWT_SECRET is empty
    """
    if not get_app_settings().jwt_secret:
        raise ConfigurationError(
            "JWT_SECRET is not set; refusing to start",
            code="MISSING_JWT_SECRET",
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    check_required_settings()
    app_settings = get_app_settings()
    if app_settings.auto_create_schema:
        init_db()
    settings = get_settings()
    logger.info(f"Starting {app_settings.app_name} on {settings.host}:{settings.port}")
    yield
    # Shutdown
    logger.info(f"Shutting down {app_settings.app_name}")


async def hub_error_handler(request: Request, exc: HubError) -> JSONResponse:
    """Render any HubError as its status code and to_dict() payload."""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are 400 like every other validation failure."""
    violations = [
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation failed",
            "code": "VALIDATION_FAILED",
            "details": {"violations": violations},
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the full traceback; tell the client nothing about it."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    error = InternalError()
    return JSONResponse(
        status_code=500,
        content={"error": error.message, "code": error.code},
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()
    app_settings = get_app_settings()

    app = FastAPI(
        title=app_settings.app_name,
        description="Accounts and preference sync for the ProductivityHub mobile app",
        version=app_settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Error handlers
    app.add_exception_handler(HubError, hub_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Register routes
    app.include_router(health.router, tags=["health"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/user", tags=["user"])
    app.include_router(preferences_router, prefix="/api/user", tags=["preferences"])

    return app


# Application instance for uvicorn
app = create_app()
