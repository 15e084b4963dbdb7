"""Failure responses for the license API.

Every failure is rendered as ``{"success": false, "message": ..., ...}``.
Status codes separate bad input (400), unknown records (404), storage
validation (400) and processing failures (500).
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from dlscrape.common.exceptions import (
    EmptyResultError,
    ExtractionError,
    RecordNotFoundError,
    RecordValidationError,
)

logger = logging.getLogger(__name__)


class ApiFailure(Exception):
    """Raised by route handlers to return a failure response.

    Attributes:
        status_code: HTTP status code.
        message: Value of the ``message`` key.
        extra: Additional keys merged into the body.
    """

    def __init__(self, status_code: int, message: str, **extra: Any) -> None:
        self.status_code = status_code
        self.message = message
        self.extra = extra
        super().__init__(message)


def failure(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that render failures in the common shape."""

    @app.exception_handler(ApiFailure)
    async def _api_failure(request: Request, exc: ApiFailure) -> JSONResponse:
        return failure(exc.status_code, exc.message, **exc.extra)

    @app.exception_handler(ExtractionError)
    async def _extraction_error(
        request: Request, exc: ExtractionError
    ) -> JSONResponse:
        if isinstance(exc, (RecordNotFoundError, EmptyResultError)):
            return failure(
                status.HTTP_404_NOT_FOUND,
                "No data found for the provided reference number",
                error=str(exc),
            )
        settings = request.app.state.settings
        detail = (
            "".join(traceback.format_exception(exc))
            if settings.is_development
            else str(exc)
        )
        return failure(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error processing request",
            error=detail,
        )

    @app.exception_handler(RecordValidationError)
    async def _validation_error(
        request: Request, exc: RecordValidationError
    ) -> JSONResponse:
        return failure(
            status.HTTP_400_BAD_REQUEST,
            "Validation Error",
            errors=exc.errors,
        )

    @app.exception_handler(IntegrityError)
    async def _integrity_error(
        request: Request, exc: IntegrityError
    ) -> JSONResponse:
        logger.error(f"Duplicate entry: {exc}")
        return failure(
            status.HTTP_400_BAD_REQUEST,
            "Duplicate entry error",
            error=str(exc.orig),
        )
