"""
Pydantic schemas for API request/response validation.
"""
from app.schemas.auth import (
    AuthRequest,
    AuthResponse,
    ErrorResponse,
)
from app.schemas.upload import (
    PresignRequest,
    PresignGrant,
    PresignResponse,
    UploadedFile,
    BatchProgress,
)

__all__ = [
    "AuthRequest",
    "AuthResponse",
    "ErrorResponse",
    "PresignRequest",
    "PresignGrant",
    "PresignResponse",
    "UploadedFile",
    "BatchProgress",
]
