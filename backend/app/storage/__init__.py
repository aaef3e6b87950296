"""
Storage module for S3-compatible object storage (Cloudflare R2).

This module issues presigned upload URLs for direct uploads from clients.
The backend NEVER receives file bytes - files go directly to R2.
"""
from app.storage.r2_client import get_r2_client, R2Client
from app.storage.presign import PresignService
from app.storage.keys import build_object_key

__all__ = ["get_r2_client", "R2Client", "PresignService", "build_object_key"]
