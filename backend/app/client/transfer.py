"""
Direct PUT of file bytes to a presigned URL.

The body is streamed in chunks so callers get byte-level progress. The
Content-Length header is always set: presigned S3 PUTs reject chunked
transfer encoding.
"""
import asyncio
import logging
from typing import AsyncIterator, Callable, Optional

import httpx

from app.client.files import FileBlob
from app.errors import TransferFailure, TransferKind

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
PROVIDER_ERROR_LIMIT = 200

ProgressFn = Callable[[int, int], None]


async def _stream(data: bytes, chunk_size: int, on_progress: Optional[ProgressFn]) -> AsyncIterator[bytes]:
    total = len(data)
    sent = 0
    for offset in range(0, total, chunk_size):
        chunk = data[offset:offset + chunk_size]
        yield chunk
        sent += len(chunk)
        if on_progress is not None:
            on_progress(sent, total)


def _rejection(response: httpx.Response) -> TransferFailure:
    message = f"Upload failed with status: {response.status_code}"
    provider_error = None
    body = response.text
    # S3/R2 errors come back as XML with a <Code> element
    if "<Code>" in body:
        provider_error = body[:PROVIDER_ERROR_LIMIT]
        message += f" - R2 Error: {provider_error}"
    logger.error(f"R2 upload error response: status={response.status_code} body={body[:PROVIDER_ERROR_LIMIT]}")
    return TransferFailure(
        message,
        kind=TransferKind.REJECTED,
        status_code=response.status_code,
        provider_error=provider_error,
    )


async def put_object(
    client: httpx.AsyncClient,
    upload_url: str,
    blob: FileBlob,
    *,
    on_progress: Optional[ProgressFn] = None,
    cancel_event: Optional[asyncio.Event] = None,
    timeout: Optional[float] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> httpx.Response:
    """
    PUT ``blob`` to ``upload_url`` with its declared Content-Type.

    Args:
        client: HTTP client used for storage requests (no base URL, no auth)
        upload_url: Presigned PUT URL
        blob: File to send
        on_progress: Called with (bytes_sent, total_bytes) after each chunk
        cancel_event: Setting it aborts the transfer
        timeout: Overall bound on the transfer in seconds

    Returns:
        The 2xx storage response

    Raises:
        TransferFailure: rejected (non-2xx), network error, timeout or cancelled
    """
    headers = {
        "Content-Type": blob.type,
        "Content-Length": str(blob.size),
    }
    request = client.put(
        upload_url,
        content=_stream(blob.data, chunk_size, on_progress),
        headers=headers,
    )

    transfer = asyncio.ensure_future(request)
    waiters = {transfer}
    cancel_wait = None
    if cancel_event is not None:
        cancel_wait = asyncio.ensure_future(cancel_event.wait())
        waiters.add(cancel_wait)

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        # The PUT is cancelled along with its caller
        transfer.cancel()
        await asyncio.gather(transfer, return_exceptions=True)
        raise
    finally:
        if cancel_wait is not None:
            cancel_wait.cancel()

    if transfer not in done:
        transfer.cancel()
        await asyncio.gather(transfer, return_exceptions=True)
        if cancel_event is not None and cancel_event.is_set():
            raise TransferFailure("Upload cancelled", kind=TransferKind.CANCELLED)
        raise TransferFailure(f"Upload timed out after {timeout:g}s", kind=TransferKind.TIMEOUT)

    try:
        response = transfer.result()
    except httpx.TimeoutException as e:
        raise TransferFailure("Upload timed out", kind=TransferKind.TIMEOUT) from e
    except httpx.HTTPError as e:
        logger.error(f"Network error during upload: {e}")
        raise TransferFailure(
            "Network error during upload: Please check your internet connection and try again",
            kind=TransferKind.NETWORK,
        ) from e

    if not response.is_success:
        raise _rejection(response)

    return response
