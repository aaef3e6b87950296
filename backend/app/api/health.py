"""
Health check endpoint.
Reports whether the login gate and storage are configured.
"""
from fastapi import APIRouter, Depends, HTTPException

from app.config import Settings, get_settings

router = APIRouter()


@router.get("")
async def health_check(settings: Settings = Depends(get_settings)):
    """
    Health check endpoint.

    Only configuration is checked: presigning never talks to the bucket,
    so a bucket round trip here would not tell anything about uploads.
    """
    health_status = {
        "status": "healthy",
        "auth": "configured" if settings.auth_password else "not_configured",
        "storage": "configured" if settings.storage_configured else "not_configured",
        "key_policy": settings.object_key_policy.value,
    }

    if health_status["auth"] != "configured" or health_status["storage"] != "configured":
        health_status["status"] = "unhealthy"
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
