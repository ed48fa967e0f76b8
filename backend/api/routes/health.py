"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shared.config import get_settings
from shared.database import check_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    database: str


@router.get("/")
async def root() -> dict:
    """Service banner."""
    settings = get_settings()
    return {"message": f"{settings.app_name} is running", "version": settings.app_version}


@router.get("/api/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get(
    "/api/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
def readiness_check():
    """
    Readiness check endpoint.

    Returns 503 while the database does not answer.
    """
    if check_connection():
        return ReadinessResponse(status="ready", database="connected")
    return JSONResponse(
        status_code=503,
        content=ReadinessResponse(status="not_ready", database="unavailable").model_dump(),
    )
