"""
Signed, time-bounded upload tokens.

Only used when ``REQUIRE_UPLOAD_TOKEN`` is enabled: the login gate issues a
token and every presign request must present it, so knowing the presign URL
alone is not enough to write to the bucket.
"""
from datetime import datetime, timedelta, timezone

import jwt

from app.errors import ConfigurationError, Unauthorized

ALGORITHM = "HS256"
AUDIENCE = "image-upload"


def create_upload_token(secret: str, ttl_seconds: int) -> str:
    if not secret:
        raise ConfigurationError("Server configuration error. Upload token secret is not set.")

    now = datetime.now(timezone.utc)
    payload = {
        "aud": AUDIENCE,
        "scope": "upload",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_upload_token(token: str, secret: str) -> dict:
    """
    Decode and validate a token issued by create_upload_token.

    Raises:
        Unauthorized: token is malformed, expired or signed with another secret
    """
    if not secret:
        raise ConfigurationError("Server configuration error. Upload token secret is not set.")

    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM], audience=AUDIENCE)
    except jwt.PyJWTError as e:
        raise Unauthorized("Missing or invalid upload token.") from e

    if claims.get("scope") != "upload":
        raise Unauthorized("Missing or invalid upload token.")
    return claims
