"""
Error rendering shared by the API endpoints.

Every failure leaves the API as ``{"success": false, "error": "..."}`` with
the status carried by the exception class.
"""
import logging
from typing import Type, TypeVar

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from app.errors import InvalidInput, UploaderError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

INTERNAL_ERROR_MESSAGE = "An internal server error occurred."


async def parse_json_body(request: Request, model: Type[ModelT], invalid_message: str) -> ModelT:
    """
    Parse the request body into ``model``.

    Raises:
        InvalidInput: body is not JSON ("Invalid request body.") or does not
            fit the model (``invalid_message``)
    """
    try:
        body = await request.json()
    except ValueError:
        raise InvalidInput("Invalid request body.")

    if not isinstance(body, dict):
        raise InvalidInput(invalid_message)

    try:
        return model.model_validate(body)
    except ValidationError:
        raise InvalidInput(invalid_message)


async def uploader_error_handler(request: Request, exc: UploaderError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UploaderError, uploader_error_handler)


def internal_error(exc: Exception, context: str) -> UploaderError:
    """Log an unexpected exception in full and return the generic error to raise."""
    logger.error(f"{context}: {exc}", exc_info=exc)
    return UploaderError(INTERNAL_ERROR_MESSAGE)
