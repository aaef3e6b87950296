"""
HTTP client for the login and presign endpoints.
"""
import logging
from typing import Optional

import httpx

from app.errors import InvalidInput, PresignFailure, Unauthorized, UploaderError
from app.schemas.upload import PresignGrant

logger = logging.getLogger(__name__)

AUTH_PATH = "/api/auth"
PRESIGN_PATH = "/api/r2presign"


class ApiClient:
    """
    Thin async wrapper around the API.

    Usage:
        async with ApiClient("https://uploads.example.com") as api:
            await api.login("secret")
            grant = await api.request_presign("cat.png", "image/png")
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    async def login(self, password: str) -> Optional[str]:
        """
        Submit the password to the login gate.

        Returns:
            The upload token when the server issues one, else None

        Raises:
            InvalidInput: 400 from the server
            Unauthorized: 401 from the server
            UploaderError: any other non-success answer
            httpx.HTTPError: network failure
        """
        response = await self._client.post(AUTH_PATH, json={"password": password})
        data = self._json(response)

        if response.is_success and data.get("success"):
            return data.get("token")

        message = data.get("error") or f"Authentication failed (Status: {response.status_code})"
        if response.status_code == 400:
            raise InvalidInput(message)
        if response.status_code == 401:
            raise Unauthorized(message)
        raise UploaderError(message)

    async def request_presign(
        self,
        file_name: str,
        content_type: str,
        checksum: Optional[str] = None,
    ) -> PresignGrant:
        """
        Ask the server for a presigned PUT URL.

        Raises:
            PresignFailure: non-success answer, malformed body or network error
        """
        payload = {"fileName": file_name, "contentType": content_type}
        if checksum:
            payload["checksum"] = checksum

        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._client.post(PRESIGN_PATH, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Error fetching presigned URL: {e}")
            raise PresignFailure(str(e) or type(e).__name__) from e

        data = self._json(response)
        required = ("presignedUrl", "publicUrl", "key")
        if not response.is_success or not data.get("success") or not all(data.get(k) for k in required):
            logger.error(f"Presign API error: status={response.status_code} error={data.get('error')}")
            raise PresignFailure(
                data.get("error") or f"Failed to get presigned URL (Status: {response.status_code})",
                status_code=response.status_code,
            )

        return PresignGrant(
            upload_url=data["presignedUrl"],
            public_url=data["publicUrl"],
            object_key=data["key"],
            expires_in=int(data.get("expiresIn") or 0),
        )
