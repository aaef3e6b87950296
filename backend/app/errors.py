"""
Error taxonomy shared by the API and the upload client.

Every error carries the HTTP status it maps to and a message that is safe
to show to the caller. Server-side handlers in app.api.errors render them
as ``{"success": false, "error": message}``.
"""
from enum import Enum
from typing import Optional


class UploaderError(Exception):
    """Base class for all expected failures."""
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(UploaderError):
    """Deployment fault: required configuration is missing."""
    status_code = 500


class InvalidInput(UploaderError):
    """The caller sent something it can correct and resubmit."""
    status_code = 400


class Unauthorized(UploaderError):
    """Wrong credential or missing upload token."""
    status_code = 401


class SigningError(UploaderError):
    """The signer failed to produce a presigned URL."""
    status_code = 500

    def __init__(self, cause: str):
        super().__init__(f"Failed to generate presigned URL: {cause}")
        self.cause = cause


# Client-side batch errors

class BatchError(UploaderError):
    """A batch upload was aborted; no partial result is returned."""


class InvalidBatch(InvalidInput, BatchError):
    """The batch was rejected before anything was sent (empty, non-image file)."""


class PresignFailure(BatchError):
    """Requesting a presigned URL for a file failed."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(f"Failed to prepare upload: {detail}")
        self.detail = detail
        self.response_status = status_code


class TransferKind(str, Enum):
    REJECTED = "rejected"
    NETWORK = "network"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class TransferFailure(BatchError):
    """The direct PUT to storage failed or was cancelled."""

    def __init__(
        self,
        message: str,
        kind: TransferKind = TransferKind.REJECTED,
        status_code: Optional[int] = None,
        provider_error: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.response_status = status_code
        self.provider_error = provider_error


class UnknownUploadError(BatchError):
    """Unexpected exception during a batch, wrapped with a generic message."""

    def __init__(self, message: str = "Upload failed: An unexpected error occurred"):
        super().__init__(message)
