"""
Object key policies.

The key decides whether two uploads can land on the same object:

- exact-name: the file name verbatim. A second upload with the same name
  replaces the first (last write wins).
- timestamp-disambiguated: ``<epoch millis>-<file name>``. Collisions need
  the same name within the same millisecond.
- content-addressed: ``<sha256>.<ext>``. Identical bytes share one object,
  different bytes never collide. Needs the client-computed checksum.
"""
import os
import re
import time
from typing import Optional

from app.config import ObjectKeyPolicy
from app.errors import InvalidInput

_SHA256_RE = re.compile(r"^[0-9a-f]{64}$")

# Fallback extensions when the file name has none
CONTENT_TYPE_EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/jpg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/webp': 'webp',
    'image/avif': 'avif',
    'image/svg+xml': 'svg',
    'image/bmp': 'bmp',
    'image/tiff': 'tiff',
    'image/heic': 'heic',
    'image/heif': 'heif',
}


def get_extension(file_name: str, content_type: str) -> str:
    """Extension (without dot) from the file name, else from the content type."""
    ext = os.path.splitext(file_name)[1].lstrip(".").lower()
    if ext:
        return ext
    return CONTENT_TYPE_EXTENSIONS.get(content_type.lower(), 'bin')


def build_object_key(
    policy: ObjectKeyPolicy,
    file_name: str,
    content_type: str,
    checksum: Optional[str] = None,
    now_ms: Optional[int] = None,
) -> str:
    """
    Derive the object key for an upload.

    Args:
        policy: Configured key policy
        file_name: Client-proposed name (already validated non-empty)
        content_type: Declared MIME type
        checksum: Hex SHA-256 of the content, required for content-addressed keys
        now_ms: Issuance time in epoch milliseconds (defaults to now)

    Raises:
        InvalidInput: content-addressed policy without a valid checksum
    """
    if policy == ObjectKeyPolicy.TIMESTAMP_DISAMBIGUATED:
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return f"{now_ms}-{file_name}"

    if policy == ObjectKeyPolicy.CONTENT_ADDRESSED:
        digest = (checksum or "").strip().lower()
        if not _SHA256_RE.match(digest):
            raise InvalidInput("checksum is required for content-addressed keys.")
        return f"{digest}.{get_extension(file_name, content_type)}"

    return file_name
