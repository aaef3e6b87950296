"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from app.api import auth, health, presign

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(presign.router, prefix="/r2presign", tags=["uploads"])
