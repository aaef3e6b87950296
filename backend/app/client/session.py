"""
Client-side session authorization.

The server issues no session. The outcome of a login is remembered here
for the life of the session and cleared on logout; nothing is persisted.
"""
import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from app.client.api import ApiClient
from app.errors import Unauthorized, UploaderError

logger = logging.getLogger(__name__)


class SessionAuthorization(BaseModel):
    authorized: bool = False
    error: Optional[str] = None
    token: Optional[str] = None


class SessionState:
    """Holds the login outcome and unlocks uploads once authorized."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.authorization = SessionAuthorization()
        self.is_loading = False

    @property
    def is_authorized(self) -> bool:
        return self.authorization.authorized

    async def login(self, password: str) -> bool:
        """
        Try to authorize the session.

        Returns True on success. On failure the error is kept in
        ``authorization.error`` for display next to the password field.
        """
        self.is_loading = True
        self.authorization = SessionAuthorization(error=None)
        try:
            token = await self.api.login(password)
        except UploaderError as e:
            self.authorization = SessionAuthorization(authorized=False, error=e.message)
            return False
        except httpx.HTTPError as e:
            logger.error(f"Login API call error: {e}")
            self.authorization = SessionAuthorization(
                authorized=False,
                error=f"Network or server error: {e}",
            )
            return False
        finally:
            self.is_loading = False

        self.api.token = token
        self.authorization = SessionAuthorization(authorized=True, token=token)
        return True

    def logout(self) -> None:
        self.api.token = None
        self.authorization = SessionAuthorization()

    def require_authorized(self) -> None:
        if not self.is_authorized:
            raise Unauthorized("Please log in before uploading.")
