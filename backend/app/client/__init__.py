"""
Client side of the presigned upload flow.

The browser-facing UI is out of scope; this package is what it calls:
login once, then upload batches straight to storage.
"""
from app.client.api import ApiClient
from app.client.files import FileBlob
from app.client.orchestrator import BatchState, FileState, UploadHistory, UploadOrchestrator
from app.client.session import SessionAuthorization, SessionState
from app.client.uploader import Uploader

__all__ = [
    "ApiClient",
    "FileBlob",
    "BatchState",
    "FileState",
    "UploadHistory",
    "UploadOrchestrator",
    "SessionAuthorization",
    "SessionState",
    "Uploader",
]
