"""
Service health endpoint.
"""

from datetime import datetime

from fastapi import APIRouter

from echomind import __version__
from echomind.api.dependencies import Service
from echomind.models.api_models import HealthResponse
from echomind.services.pronunciation_service import PronunciationService

router = APIRouter(prefix="/api/v1", tags=["health"])


def _status(healthy: bool, unhealthy: str = "unconfigured") -> str:
    return "healthy" if healthy else unhealthy


@router.get("/health", response_model=HealthResponse)
async def service_health(service: PronunciationService = Service) -> HealthResponse:
    """Health of the user store and which providers are configured."""
    store_healthy = await service.users.health_check()
    components = {
        "user_store": _status(store_healthy, "unhealthy"),
        "transcription": _status(service.transcription.configured),
        "voice": _status(service.synthesizer.client is not None),
    }

    degraded = any(value != "healthy" for value in components.values())
    return HealthResponse(
        status="degraded" if degraded else "healthy",
        timestamp=datetime.utcnow(),
        version=__version__,
        components=components
    )
