"""
Batch upload orchestration.

For each file of a batch: request a presigned URL, PUT the bytes straight
to storage, record the result. Batch states are IDLE -> RUNNING ->
SUCCEEDED | FAILED; each file moves PENDING_PRESIGN -> PRESIGNED ->
TRANSFERRING -> DONE | FILE_FAILED | CANCELLED (a pooled sibling of a
failed file).

Reporting is all-or-nothing: a failed batch returns no files, even though
objects written before the failure stay in the bucket.
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Sequence

import httpx

from app.client.api import ApiClient
from app.client.files import FileBlob
from app.client.transfer import DEFAULT_CHUNK_SIZE, put_object
from app.errors import (
    BatchError,
    InvalidBatch,
    TransferFailure,
    TransferKind,
    UnknownUploadError,
    UploaderError,
)
from app.schemas.upload import BatchProgress, UploadedFile
from app.utils.logging import log_batch_failed, log_upload_completed

logger = logging.getLogger(__name__)

RESET_DELAY_SECONDS = 2.0
DEFAULT_TRANSFER_TIMEOUT = 120.0
# Share of a file credited while its bytes are in flight; the rest on a 2xx
IN_FLIGHT_CAP = 0.99


class BatchState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FileState(str, Enum):
    PENDING_PRESIGN = "pending_presign"
    PRESIGNED = "presigned"
    TRANSFERRING = "transferring"
    DONE = "done"
    FILE_FAILED = "file_failed"
    CANCELLED = "cancelled"


class UploadHistory:
    """Files uploaded during the session and the last successful batch."""

    def __init__(self):
        self.files: List[UploadedFile] = []
        self.recent_uploads: List[UploadedFile] = []

    def record_batch(self, uploaded: Sequence[UploadedFile]) -> None:
        self.files.extend(uploaded)
        self.recent_uploads = list(uploaded)

    def clear_recent_uploads(self) -> None:
        self.recent_uploads = []


class UploadOrchestrator:
    """
    Uploads batches of files through presigned URLs.

    Args:
        api: Client for the presign endpoint
        transport: Optional httpx transport for storage requests
        max_concurrency: Files in flight at once (1 = strictly sequential)
        transfer_timeout: Bound on each PUT in seconds
        reset_delay: Seconds the final 100% stays visible before resetting to 0
        on_progress: Called with the BatchProgress after every change
    """

    def __init__(
        self,
        api: ApiClient,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_concurrency: int = 1,
        transfer_timeout: Optional[float] = DEFAULT_TRANSFER_TIMEOUT,
        reset_delay: float = RESET_DELAY_SECONDS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        on_progress: Optional[Callable[[BatchProgress], None]] = None,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.api = api
        self.transport = transport
        self.max_concurrency = max_concurrency
        self.transfer_timeout = transfer_timeout
        self.reset_delay = reset_delay
        self.chunk_size = chunk_size
        self.on_progress = on_progress

        self.state = BatchState.IDLE
        self.progress = BatchProgress()
        self.file_states: List[FileState] = []
        self.history = UploadHistory()

        self._fractions: List[float] = []
        self._cancel_event = asyncio.Event()
        self._run_id = 0
        self._reset_handle: Optional[asyncio.TimerHandle] = None
        self._names: List[str] = []

    # Progress

    def _notify(self) -> None:
        if self.on_progress is not None:
            self.on_progress(self.progress)

    def _set_fraction(self, index: int, fraction: float) -> None:
        """Credit file ``index`` with ``fraction`` of its share, never going backwards."""
        self._fractions[index] = max(self._fractions[index], min(fraction, 1.0))
        total = len(self._fractions)
        percent = round(sum(self._fractions) / total * 100)
        percent = max(self.progress.percent_complete, min(percent, 100))
        if percent != self.progress.percent_complete:
            self.progress.percent_complete = percent
            self._notify()

    def _reset_progress(self, run_id: int) -> None:
        # A newer batch owns the progress record now
        if run_id != self._run_id or self.state == BatchState.RUNNING:
            return
        self.progress.percent_complete = 0
        self._notify()

    # Control

    def cancel(self) -> None:
        """Abort the running batch, including a presign request or transfer in flight."""
        self._cancel_event.set()

    def _check_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise TransferFailure("Upload cancelled", kind=TransferKind.CANCELLED)

    async def _unless_cancelled(self, awaitable):
        """Await ``awaitable``, abandoning it as soon as cancel() is called."""
        task = asyncio.ensure_future(awaitable)
        cancel_wait = asyncio.ensure_future(self._cancel_event.wait())
        try:
            done, _ = await asyncio.wait({task, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise
        finally:
            cancel_wait.cancel()

        if task not in done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise TransferFailure("Upload cancelled", kind=TransferKind.CANCELLED)
        return task.result()

    # Upload

    async def _upload_one(self, storage: httpx.AsyncClient, index: int, blob: FileBlob) -> UploadedFile:
        start = time.perf_counter()
        self.file_states[index] = FileState.PENDING_PRESIGN
        try:
            self._check_cancelled()
            grant = await self._unless_cancelled(
                self.api.request_presign(blob.name, blob.type, checksum=blob.sha256())
            )
            self.file_states[index] = FileState.PRESIGNED

            self._check_cancelled()
            self.file_states[index] = FileState.TRANSFERRING
            await put_object(
                storage,
                grant.upload_url,
                blob,
                on_progress=lambda sent, total: self._set_fraction(
                    index, sent / total * IN_FLIGHT_CAP if total else 0.0
                ),
                cancel_event=self._cancel_event,
                timeout=self.transfer_timeout,
                chunk_size=self.chunk_size,
            )
        except asyncio.CancelledError:
            self.file_states[index] = FileState.CANCELLED
            raise
        except BaseException:
            self.file_states[index] = FileState.FILE_FAILED
            raise

        self._set_fraction(index, 1.0)
        self.file_states[index] = FileState.DONE

        uploaded = UploadedFile(
            id=grant.object_key,
            name=blob.name,
            size=blob.size,
            type=blob.type,
            url=grant.public_url,
            uploaded_at=datetime.now(timezone.utc),
        )
        log_upload_completed(
            logger,
            object_key=grant.object_key,
            size=blob.size,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        return uploaded

    async def _run_sequential(self, storage: httpx.AsyncClient, files: Sequence[FileBlob]) -> List[UploadedFile]:
        results = []
        for index, blob in enumerate(files):
            results.append(await self._upload_one(storage, index, blob))
            self.progress.completed_files = list(results)
        return results

    async def _run_pooled(self, storage: httpx.AsyncClient, files: Sequence[FileBlob]) -> List[UploadedFile]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def worker(index: int, blob: FileBlob) -> UploadedFile:
            async with semaphore:
                return await self._upload_one(storage, index, blob)

        tasks = [asyncio.ensure_future(worker(i, blob)) for i, blob in enumerate(files)]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # First failure aborts the rest of the batch
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    @staticmethod
    def _validate(files: Sequence[FileBlob]) -> Optional[InvalidBatch]:
        if not files:
            return InvalidBatch("No files to upload")
        for blob in files:
            if not blob.is_image:
                return InvalidBatch(f"Only image files are allowed: {blob.name}")
        return None

    def _start(self, files: Sequence[FileBlob]) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
        self._run_id += 1
        self._cancel_event = asyncio.Event()
        self._fractions = [0.0] * len(files)
        self.file_states = [FileState.PENDING_PRESIGN] * len(files)
        self.state = BatchState.RUNNING
        self.progress = BatchProgress(percent_complete=0, is_uploading=True)
        self._notify()

    def _fail(self, error: UploaderError, total: int, start: float) -> None:
        completed = self.file_states.count(FileState.DONE)
        failed_at = next(
            (i for i, s in enumerate(self.file_states) if s == FileState.FILE_FAILED),
            None,
        )
        self.state = BatchState.FAILED
        self.progress.is_uploading = False
        self.progress.error = error.message
        self.progress.completed_files = []
        log_batch_failed(
            logger,
            error=error.message,
            file_name=self._names[failed_at] if failed_at is not None else None,
            completed=completed,
            total=total,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        self._notify()

    async def upload_batch(self, files: Sequence[FileBlob]) -> List[UploadedFile]:
        """
        Upload every file of the batch, in input order.

        Returns:
            The uploaded files, one per input file, in input order

        Raises:
            InvalidBatch: empty batch or a non-image file (nothing is sent)
            PresignFailure: a presigned URL could not be obtained
            TransferFailure: storage rejected a PUT, network error, timeout or cancel
            UnknownUploadError: anything unexpected
        """
        if self.state == BatchState.RUNNING:
            raise InvalidBatch("A batch is already uploading")

        files = list(files)
        rejection = self._validate(files)
        if rejection is not None:
            self.state = BatchState.FAILED
            self.progress = BatchProgress(error=rejection.message)
            self._notify()
            raise rejection

        self._names = [blob.name for blob in files]
        self._start(files)
        start = time.perf_counter()

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.transfer_timeout) as storage:
                if self.max_concurrency == 1:
                    results = await self._run_sequential(storage, files)
                else:
                    results = await self._run_pooled(storage, files)
        except BatchError as e:
            self._fail(e, len(files), start)
            raise
        except asyncio.CancelledError:
            self._fail(TransferFailure("Upload cancelled", kind=TransferKind.CANCELLED), len(files), start)
            raise
        except Exception as e:
            logger.error(f"Unexpected error during batch upload: {e}", exc_info=e)
            error = UnknownUploadError()
            self._fail(error, len(files), start)
            raise error from e

        self.state = BatchState.SUCCEEDED
        self.progress.percent_complete = 100
        self.progress.is_uploading = False
        self.progress.completed_files = list(results)
        self.history.record_batch(results)
        self._notify()

        run_id = self._run_id
        self._reset_handle = asyncio.get_running_loop().call_later(
            self.reset_delay, self._reset_progress, run_id
        )
        return list(results)
