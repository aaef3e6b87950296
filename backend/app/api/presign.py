"""
Presign endpoint.

POST /api/r2presign with ``{"fileName": "cat.png", "contentType": "image/png"}``
returns a PUT URL valid for 5 minutes and the public URL the image will be
served from. The client then PUTs the bytes straight to R2.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from app.api.errors import internal_error, parse_json_body
from app.auth.dependencies import require_upload_token
from app.config import Settings, get_settings
from app.errors import UploaderError
from app.schemas.auth import ErrorResponse
from app.schemas.upload import PresignRequest, PresignResponse
from app.storage.presign import PresignService
from app.storage.r2_client import get_r2_client

router = APIRouter()


def get_presign_service(settings: Settings = Depends(get_settings)) -> PresignService:
    return PresignService(get_r2_client(settings), settings)


@router.post(
    "",
    response_model=PresignResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def presign_upload(
    request: Request,
    service: PresignService = Depends(get_presign_service),
    token_claims: Optional[dict] = Depends(require_upload_token),
):
    """
    Issue a presigned PUT URL for one image.

    - 200 with presignedUrl, publicUrl, key and expiresIn
    - 400 when the body is invalid or the content type is not image/*
    - 401 when upload tokens are required and none (or a bad one) was sent
    - 500 when storage is not configured or signing fails
    """
    try:
        service.ensure_configured()
        body = await parse_json_body(request, PresignRequest, "fileName and contentType are required.")
        grant = service.issue_presign(body)
    except UploaderError:
        raise
    except Exception as e:
        raise internal_error(e, "Presign endpoint error")

    return PresignResponse.from_grant(grant)


@router.api_route("", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"], include_in_schema=False)
async def presign_method_not_allowed():
    return Response(status_code=405)
