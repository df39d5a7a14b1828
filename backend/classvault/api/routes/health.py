"""Health check endpoint."""

from fastapi import APIRouter

from classvault.core.config import settings
from classvault.schemas.health import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check application health.

    Returns:
        Health status, application version and whether Drive credentials are set.
    """
    return HealthResponse(
        status="ok",
        version=settings.version,
        drive_configured=settings.drive_configured,
    )
