"""
Error handlers - request validation failures as structured rejections.

Body schema errors (wrong types, oversized fields, malformed JSON) are
reported with the same {kind, message} shape as domain validation.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api.models import RejectionResponse
from src.domain.exceptions import ValidationReason

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register global error handlers on the FastAPI app."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=build_rejection(exc).model_dump(by_alias=True, exclude_none=True),
        )


def build_rejection(exc: RequestValidationError) -> RejectionResponse:
    """Map pydantic errors to a single rejection, email problems first."""
    if any("email" in error.get("loc", ()) for error in exc.errors()):
        return RejectionResponse(
            kind=ValidationReason.INVALID_EMAIL.value,
            message="Please provide a valid email address",
        )
    return RejectionResponse(
        kind=ValidationReason.INVALID_INPUT.value,
        message="Invalid request data",
    )
