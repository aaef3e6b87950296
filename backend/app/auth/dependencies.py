"""
FastAPI dependencies for authentication.
Provides the login gate and the optional upload-token check.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.auth.gate import CredentialGate
from app.auth.tokens import verify_upload_token
from app.config import Settings, get_settings
from app.errors import Unauthorized

# auto_error=False: a missing header must produce our own 401 body, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def get_credential_gate(settings: Settings = Depends(get_settings)) -> CredentialGate:
    """Gate bound to the configured reference password."""
    return CredentialGate(settings.auth_password)


async def require_upload_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> Optional[dict]:
    """
    Validate the Bearer upload token when tokens are required.

    Returns the token claims, or None when the deployment runs without
    tokens (the client-side gate is then the only protection).

    Raises:
        Unauthorized: token required but missing or invalid
    """
    if not settings.require_upload_token:
        return None

    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing or invalid upload token.")

    return verify_upload_token(credentials.credentials, settings.token_secret)
