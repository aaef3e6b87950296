"""
Single entry point for a UI: log in once, then upload batches.
"""
from typing import Callable, List, Optional, Sequence

import httpx

from app.client.api import ApiClient
from app.client.files import FileBlob
from app.client.orchestrator import UploadHistory, UploadOrchestrator
from app.client.session import SessionState
from app.schemas.upload import BatchProgress, UploadedFile


class Uploader:
    """
    Ties the login session to the orchestrator.

    Usage:
        async with Uploader("https://uploads.example.com") as uploader:
            if await uploader.login(password):
                files = await uploader.upload([FileBlob.from_path("cat.png")])
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_transport: Optional[httpx.AsyncBaseTransport] = None,
        storage_transport: Optional[httpx.AsyncBaseTransport] = None,
        max_concurrency: int = 1,
        transfer_timeout: Optional[float] = 120.0,
        on_progress: Optional[Callable[[BatchProgress], None]] = None,
    ):
        self.api = ApiClient(base_url, transport=api_transport)
        self.session = SessionState(self.api)
        self.orchestrator = UploadOrchestrator(
            self.api,
            transport=storage_transport,
            max_concurrency=max_concurrency,
            transfer_timeout=transfer_timeout,
            on_progress=on_progress,
        )

    async def __aenter__(self) -> "Uploader":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.api.aclose()

    @property
    def progress(self) -> BatchProgress:
        return self.orchestrator.progress

    @property
    def history(self) -> UploadHistory:
        return self.orchestrator.history

    async def login(self, password: str) -> bool:
        return await self.session.login(password)

    def logout(self) -> None:
        self.session.logout()

    async def upload(self, files: Sequence[FileBlob]) -> List[UploadedFile]:
        """
        Upload a batch once the session is authorized.

        Raises:
            Unauthorized: not logged in
            BatchError: see UploadOrchestrator.upload_batch
        """
        self.session.require_authorized()
        return await self.orchestrator.upload_batch(files)

    def cancel(self) -> None:
        self.orchestrator.cancel()
