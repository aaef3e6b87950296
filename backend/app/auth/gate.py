"""
Shared-secret login gate.

The gate is stateless: it compares a candidate against the configured
reference secret and either returns or raises. It issues no session; the
client remembers the outcome (see app.client.session). When upload tokens
are enabled the endpoint additionally hands out a signed token, which the
presign endpoint then checks on every call.
"""
import hmac
import logging
from typing import Any, Optional

from app.errors import ConfigurationError, InvalidInput, Unauthorized

logger = logging.getLogger(__name__)


class CredentialGate:
    """Verifies a submitted password against the server-held one."""

    def __init__(self, reference_secret: Optional[str]):
        self._reference = reference_secret

    @property
    def is_configured(self) -> bool:
        return bool(self._reference)

    def ensure_configured(self) -> None:
        """
        Raise ConfigurationError when no reference secret is set.

        Kept separate from a wrong password so operators can tell a
        misconfigured deployment from a user typo.
        """
        if not self.is_configured:
            raise ConfigurationError(
                "Server configuration error. AUTH_PASSWORD environment variable is not set."
            )

    def authorize(self, candidate: Any) -> None:
        """
        Accept the candidate iff it equals the reference secret exactly.

        No trimming and no case folding. The comparison runs in constant time
        over the UTF-8 bytes of both values.

        Raises:
            ConfigurationError: no reference secret configured
            InvalidInput: candidate missing, empty or not a string
            Unauthorized: candidate does not match
        """
        self.ensure_configured()

        if not isinstance(candidate, str) or not candidate:
            raise InvalidInput("Password is required.")

        if not hmac.compare_digest(
            candidate.encode("utf-8"),
            self._reference.encode("utf-8"),
        ):
            raise Unauthorized("Invalid password.")
