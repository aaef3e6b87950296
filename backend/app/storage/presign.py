"""
Presigned URL generation service.

Handles the business logic for issuing presigned upload grants.

Flow:
1. Client requests a grant with fileName and contentType
2. Backend validates the request (image/* only) and derives the object key
3. Backend signs a PUT URL for that key, valid for 5 minutes
4. Client uploads directly to R2 using the presigned URL
5. The object is then served from the public image domain

Nothing is written to storage at issuance, so two grants for the same
request are independent until one of them is used.
"""
import logging
import time

from app.config import Settings
from app.errors import ConfigurationError, InvalidInput, SigningError
from app.schemas.upload import PresignGrant, PresignRequest
from app.storage.keys import build_object_key
from app.storage.r2_client import R2Client
from app.utils.logging import log_presign_issued, log_presign_failure
from app.utils.metrics import presigns_issued_total, presigns_failed_total, presign_duration_seconds

logger = logging.getLogger(__name__)


class PresignService:
    """
    Service for issuing presigned uploads.

    Responsibilities:
    - Validate upload requests
    - Derive object keys according to the configured policy
    - Sign PUT URLs and build the matching public URLs
    """

    def __init__(self, r2: R2Client, settings: Settings):
        self.r2 = r2
        self.settings = settings

    def ensure_configured(self) -> None:
        """Raise ConfigurationError unless every storage setting is present."""
        if not self.settings.storage_configured or not self.r2.is_configured:
            logger.error("Missing one or more R2 settings, cannot issue presigned URLs")
            presigns_failed_total.labels(reason="configuration").inc()
            raise ConfigurationError("Server configuration error (R2).")

    @staticmethod
    def validate_request(request: PresignRequest) -> tuple[str, str]:
        """
        Check the request and return (file_name, content_type).

        Only the declared type is checked; the bytes are never sniffed.

        Raises:
            InvalidInput: missing fields or non-image content type
        """
        if not request.file_name or not request.content_type:
            raise InvalidInput("fileName and contentType are required.")
        if not request.content_type.startswith("image/"):
            raise InvalidInput("Only image files are allowed.")
        return request.file_name, request.content_type

    def issue_presign(self, request: PresignRequest) -> PresignGrant:
        """
        Issue a presigned PUT URL and the public URL for the same object.

        Raises:
            ConfigurationError: storage settings missing
            InvalidInput: invalid request
            SigningError: signer failed
        """
        self.ensure_configured()

        try:
            file_name, content_type = self.validate_request(request)
            object_key = build_object_key(
                self.settings.object_key_policy,
                file_name,
                content_type,
                checksum=request.checksum,
            )
        except InvalidInput:
            presigns_failed_total.labels(reason="invalid_input").inc()
            raise

        start = time.perf_counter()
        try:
            upload_url = self.r2.generate_presigned_upload_url(
                object_key,
                content_type,
                expiration=self.settings.r2_presign_expiration,
            )
        except SigningError as e:
            presigns_failed_total.labels(reason="signing").inc()
            log_presign_failure(
                logger,
                error=e.cause,
                object_key=object_key,
                duration_ms=(time.perf_counter() - start) * 1000,
            )
            raise

        elapsed = time.perf_counter() - start
        presign_duration_seconds.observe(elapsed)
        presigns_issued_total.labels(key_policy=self.settings.object_key_policy.value).inc()
        log_presign_issued(
            logger,
            object_key=object_key,
            content_type=content_type,
            duration_ms=elapsed * 1000,
            key_policy=self.settings.object_key_policy.value,
        )

        return PresignGrant(
            upload_url=upload_url,
            public_url=self.r2.public_url(object_key),
            object_key=object_key,
            expires_in=self.settings.r2_presign_expiration,
        )
