"""
Health check endpoints.
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from kny_api.core.config import settings
from kny_api.schemas.common import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        message="API is running",
        timestamp=datetime.now(timezone.utc),
        version=settings.VERSION,
    )
