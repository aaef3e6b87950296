"""
Application configuration using Pydantic Settings.
All environment variables are loaded here with sensible defaults.
"""
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ObjectKeyPolicy(str, Enum):
    """How object keys are derived from an upload request."""
    EXACT_NAME = "exact-name"
    CONTENT_ADDRESSED = "content-addressed"
    TIMESTAMP_DISAMBIGUATED = "timestamp-disambiguated"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = "dev"
    log_level: str = "INFO"
    cors_origins: str = "*"  # Comma separated

    # Shared-secret login gate
    auth_password: Optional[str] = None

    # Signed upload tokens (off by default: the gate only answers yes/no)
    require_upload_token: bool = False
    upload_token_secret: Optional[str] = None  # Falls back to auth_password
    upload_token_ttl_seconds: int = 3600

    # Cloudflare R2 / S3-compatible storage
    r2_account_id: Optional[str] = None
    r2_endpoint: Optional[str] = None  # e.g., https://<account_id>.r2.cloudflarestorage.com
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[str] = None
    r2_bucket_name: Optional[str] = None
    r2_region: str = "auto"  # R2 uses "auto" for region
    r2_presign_expiration: int = 300  # Presigned URL expiration in seconds (5 min)
    public_image_domain: Optional[str] = None  # e.g., https://images.example.com
    object_key_policy: ObjectKeyPolicy = ObjectKeyPolicy.EXACT_NAME

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def storage_endpoint(self) -> Optional[str]:
        """Explicit endpoint, or the R2 endpoint derived from the account id."""
        if self.r2_endpoint:
            return self.r2_endpoint
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return None

    @property
    def storage_configured(self) -> bool:
        return all([
            self.storage_endpoint,
            self.r2_access_key_id,
            self.r2_secret_access_key,
            self.r2_bucket_name,
            self.public_image_domain,
        ])

    @property
    def token_secret(self) -> Optional[str]:
        return self.upload_token_secret or self.auth_password

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Global settings instance
settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """FastAPI dependency returning the global settings (overridable in tests)."""
    return settings
