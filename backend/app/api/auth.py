"""
Login endpoint.

POST /api/auth with ``{"password": "..."}``. The server keeps no session:
a success tells the client to unlock uploads for the rest of its session.
When upload tokens are required, the response also carries a signed token
that the presign endpoint checks.
"""
import logging
import time

from fastapi import APIRouter, Depends, Request, Response

from app.api.errors import internal_error, parse_json_body
from app.auth.dependencies import get_credential_gate
from app.auth.gate import CredentialGate
from app.auth.tokens import create_upload_token
from app.config import Settings, get_settings
from app.errors import ConfigurationError, InvalidInput, Unauthorized, UploaderError
from app.schemas.auth import AuthRequest, AuthResponse, ErrorResponse
from app.utils.logging import log_auth_attempt
from app.utils.metrics import auth_attempts_total

logger = logging.getLogger(__name__)

router = APIRouter()

_OUTCOMES = {
    ConfigurationError: "misconfigured",
    InvalidInput: "invalid_input",
    Unauthorized: "invalid_password",
}


def _record(outcome: str, start: float) -> None:
    auth_attempts_total.labels(outcome=outcome).inc()
    log_auth_attempt(logger, outcome=outcome, duration_ms=(time.perf_counter() - start) * 1000)


@router.post(
    "",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def login(
    request: Request,
    gate: CredentialGate = Depends(get_credential_gate),
    settings: Settings = Depends(get_settings),
):
    """
    Check the submitted password against AUTH_PASSWORD.

    - 200 ``{"success": true}`` on a match
    - 400 when the body is not JSON or the password is missing
    - 401 on a wrong password
    - 500 when AUTH_PASSWORD is not configured
    """
    start = time.perf_counter()
    try:
        gate.ensure_configured()
        body = await parse_json_body(request, AuthRequest, "Password is required.")
        gate.authorize(body.password)
        token = None
        if settings.require_upload_token:
            token = create_upload_token(settings.token_secret, settings.upload_token_ttl_seconds)
    except UploaderError as e:
        _record(_OUTCOMES.get(type(e), "error"), start)
        raise
    except Exception as e:
        _record("error", start)
        raise internal_error(e, "Authentication endpoint error")

    _record("success", start)
    return AuthResponse(token=token)


@router.api_route("", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"], include_in_schema=False)
async def login_method_not_allowed():
    return Response(status_code=405)
