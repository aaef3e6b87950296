"""
Pydantic schemas for presigned uploads.

Wire fields use camelCase (``fileName``, ``presignedUrl``...) while Python
code uses snake_case; both names are accepted when building a model.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictStr


class PresignRequest(BaseModel):
    """Request for a presigned PUT URL for one file."""
    file_name: Optional[StrictStr] = Field(None, alias="fileName", description="Proposed object name")
    content_type: Optional[StrictStr] = Field(None, alias="contentType", description="Declared MIME type, must be image/*")
    checksum: Optional[StrictStr] = Field(None, description="Hex SHA-256 of the content (content-addressed keys)")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "fileName": "cat.png",
                "contentType": "image/png"
            }
        }


class PresignGrant(BaseModel):
    """A signed write URL and the public URL of the same object."""
    upload_url: str
    public_url: str
    object_key: str
    expires_in: int


class PresignResponse(BaseModel):
    """Response schema for a presigned URL."""
    success: bool = True
    presigned_url: str = Field(..., alias="presignedUrl", description="Presigned PUT URL for direct upload")
    public_url: str = Field(..., alias="publicUrl", description="Stable public URL of the object")
    key: str = Field(..., description="Object key in the bucket")
    expires_in: int = Field(..., alias="expiresIn", description="URL expiration time in seconds")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "success": True,
                "presignedUrl": "https://<account>.r2.cloudflarestorage.com/images/cat.png?X-Amz-...",
                "publicUrl": "https://images.example.com/cat.png",
                "key": "cat.png",
                "expiresIn": 300
            }
        }

    @classmethod
    def from_grant(cls, grant: PresignGrant) -> "PresignResponse":
        return cls(
            presigned_url=grant.upload_url,
            public_url=grant.public_url,
            key=grant.object_key,
            expires_in=grant.expires_in,
        )


class UploadedFile(BaseModel):
    """A file that reached storage. ``id`` is its object key."""
    id: str
    name: str
    size: int = Field(..., ge=0)
    type: str
    url: str
    uploaded_at: datetime = Field(..., alias="uploadedAt")

    class Config:
        populate_by_name = True
        frozen = True


class BatchProgress(BaseModel):
    """Progress of the running batch, mutated only by the orchestrator."""
    percent_complete: int = Field(0, ge=0, le=100)
    is_uploading: bool = False
    error: Optional[str] = None
    completed_files: List[UploadedFile] = Field(default_factory=list)
