"""
Health check endpoints for monitoring application status
"""
from fastapi import APIRouter
from datetime import datetime

from graffic import __version__
from graffic.models.common import HealthResponse

router = APIRouter(prefix="/health")


@router.get("", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint to verify the API is running
    """
    return HealthResponse(
        status="healthy",
        message="Graffic API is running",
        timestamp=datetime.utcnow(),
        version=__version__,
    )
