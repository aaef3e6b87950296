"""
Cloudflare R2 / S3-compatible storage client.

Uses boto3 with S3-compatible API to interact with Cloudflare R2.
This is storage-provider agnostic - works with any S3-compatible storage.

Presigning is a local SigV4 computation: no request reaches the bucket
when an upload URL is issued.
"""
import logging
from typing import Optional
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings, settings as default_settings
from app.errors import ConfigurationError, SigningError

logger = logging.getLogger(__name__)


class R2Client:
    """
    S3-compatible client for Cloudflare R2.

    Provides presigned PUT URLs, public URLs and a few read-only helpers
    used to verify what actually landed in the bucket.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize R2 client with boto3.

        Uses settings for configuration. An unconfigured client is still
        constructed; every operation then raises ConfigurationError.
        """
        self.settings = settings or default_settings
        self._client = None

        if not self.settings.storage_configured:
            logger.warning(
                "R2 storage not configured. Set R2_ACCOUNT_ID (or R2_ENDPOINT), "
                "R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME and PUBLIC_IMAGE_DOMAIN."
            )
            return

        # Use signature_version='s3v4' for R2 compatibility
        self._client = boto3.client(
            's3',
            endpoint_url=self.settings.storage_endpoint,
            aws_access_key_id=self.settings.r2_access_key_id,
            aws_secret_access_key=self.settings.r2_secret_access_key,
            region_name=self.settings.r2_region,
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'}  # Key is the URL path after the bucket
            )
        )
        logger.info(f"R2 client initialized for bucket: {self.settings.r2_bucket_name}")

    @property
    def is_configured(self) -> bool:
        """Check if R2 client is properly configured."""
        return self._client is not None

    @property
    def bucket(self) -> str:
        return self.settings.r2_bucket_name

    def _require_client(self):
        if not self.is_configured:
            raise ConfigurationError("Server configuration error (R2).")
        return self._client

    def generate_presigned_upload_url(
        self,
        object_key: str,
        content_type: str,
        expiration: Optional[int] = None
    ) -> str:
        """
        Generate a presigned PUT URL for direct upload.

        Args:
            object_key: The S3 object key (path in bucket)
            content_type: MIME type the upload must declare
            expiration: URL expiration in seconds (default from settings)

        Returns:
            Presigned URL string

        Raises:
            ConfigurationError: storage not configured
            SigningError: botocore failed to sign
        """
        client = self._require_client()

        if expiration is None:
            expiration = self.settings.r2_presign_expiration

        try:
            return client.generate_presigned_url(
                ClientMethod='put_object',
                Params={
                    'Bucket': self.bucket,
                    'Key': object_key,
                    'ContentType': content_type,
                },
                ExpiresIn=expiration
            )
        except (ClientError, BotoCoreError) as e:
            raise SigningError(str(e)) from e

    def public_url(self, object_key: str) -> str:
        """Stable public URL of an object, served from the public image domain."""
        domain = (self.settings.public_image_domain or "").rstrip("/")
        return f"{domain}/{quote(object_key, safe='/')}"

    def check_object_exists(self, object_key: str) -> bool:
        """
        Check if an object exists in the bucket.

        Raises ClientError for anything other than a missing object.
        """
        client = self._require_client()
        try:
            client.head_object(Bucket=self.bucket, Key=object_key)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in ('404', 'NoSuchKey', 'NotFound'):
                return False
            raise

    def list_objects(self, prefix: str = "") -> list[dict]:
        """
        List all objects under a prefix using pagination.

        Returns:
            List of dicts with Key, Size and LastModified
        """
        client = self._require_client()
        paginator = client.get_paginator('list_objects_v2')

        objects = []
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            objects.extend(page.get('Contents', []))

        logger.debug(f"Listed {len(objects)} objects under '{prefix}'")
        return objects


# Singleton instance
_r2_client: Optional[R2Client] = None


def get_r2_client(settings: Optional[Settings] = None) -> R2Client:
    """
    Get the shared R2 client instance.

    Rebuilt when a different settings object is passed (tests override it).
    """
    global _r2_client
    settings = settings or default_settings
    if _r2_client is None or _r2_client.settings is not settings:
        _r2_client = R2Client(settings)
    return _r2_client
