"""
FastAPI application entry point.
Sets up the API with logging, metrics and error rendering.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from app.config import settings
from app.api.errors import register_exception_handlers
from app.api.router import api_router
from app.middleware.metrics_middleware import MetricsMiddleware
from app.storage.r2_client import get_r2_client
from app.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: configure logging, report missing configuration
    """
    configure_logging('image-uploader-api', settings.log_level)

    if not settings.auth_password:
        logger.error("AUTH_PASSWORD is not set; every login will fail with a configuration error")
    if settings.require_upload_token and not settings.token_secret:
        logger.error("REQUIRE_UPLOAD_TOKEN is set but no UPLOAD_TOKEN_SECRET or AUTH_PASSWORD is available")

    # Builds the boto3 client once and logs whether storage is configured
    get_r2_client(settings)

    yield


# Create FastAPI app
app = FastAPI(
    title="Image Uploader API",
    description="Presigned direct-to-R2 image uploads behind a shared password",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=False,
    allow_methods=["POST"],
    allow_headers=["*"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

register_exception_handlers(app)

app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Image Uploader API",
        "version": "0.1.0",
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
