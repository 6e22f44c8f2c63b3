"""
Health check API endpoints
"""

from fastapi import APIRouter

from beatcut.core.config import settings
from beatcut.presentation.api.v1.schemas.health import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint that reports which collaborators are configured
    """
    ai_enabled = bool(settings.openai_api_key)
    return HealthResponse(
        status="healthy",
        version=settings.api_version,
        candidate_provider=settings.candidate_provider,
        beat_strategy=settings.beat_strategy,
        smart_pick=bool(settings.smart_pick and ai_enabled),
        smart_query=bool(settings.smart_query and ai_enabled),
    )


@router.get("/")
async def root():
    """
    Root endpoint
    """
    return {"message": "Beatcut API is running", "status": "healthy"}
