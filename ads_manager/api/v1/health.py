"""
Health check endpoints
"""
from fastapi import APIRouter, Depends

from ads_manager.core.config import settings
from ads_manager.core.deps import get_api_client
from ads_manager.core.exceptions import PlatformApiError
from ads_manager.services.platform_api import PlatformApiClient

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT
    }


@router.get("/health/api")
async def platform_api_health(api: PlatformApiClient = Depends(get_api_client)):
    """Ads Platform API reachability"""
    try:
        await api.ping()
    except PlatformApiError as e:
        return {
            "status": "unhealthy",
            "platform_api": settings.platform_api_url,
            "error": e.message
        }
    return {
        "status": "healthy",
        "platform_api": settings.platform_api_url
    }
