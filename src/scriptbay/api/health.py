"""Health check endpoint."""

from fastapi import APIRouter

from scriptbay.models import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Return service health status."""
    return HealthResponse()
