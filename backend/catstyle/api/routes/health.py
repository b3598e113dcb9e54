"""
Health check endpoints
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from catstyle.api.routes.suggest import get_gateway
from catstyle.services.provider_gateway import ProviderGateway

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(gateway: ProviderGateway = Depends(get_gateway)):
    """
    Basic health check endpoint

    Returns:
        dict: Health status
    """
    settings = gateway.settings
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.app_name,
        "environment": settings.app_env,
        "components": {
            "gateway": {
                "status": "healthy" if gateway.is_configured else "not_configured",
                "default_model": settings.default_ai_model,
            },
        },
    }


@router.get("/health/liveness")
async def liveness_check():
    """
    Liveness check - is the service alive?

    Returns:
        dict: Liveness status
    """
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
