# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error rendering for the HTTP boundary.

Every failed request gets one body shape:

    {"success": false, "error": {"kind": "CONFLICT", "message": "..."}}

Classified provisioning errors keep their safe message. Anything
unclassified is logged with full detail and rendered as a generic
internal error.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.domains.provisioning.errors import (
    INTERNAL_ERROR_MESSAGE,
    ErrorKind,
    ProvisioningError,
)
from src.infrastructure.storage import InvalidFileError, StorageError
from src.models.student import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.REMOTE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(kind: ErrorKind, message: str) -> JSONResponse:
    """Build the JSON error response for a kind."""
    body = ErrorResponse(error=ErrorDetail(kind=kind.value, message=message))
    return JSONResponse(status_code=STATUS_BY_KIND[kind], content=body.model_dump())


async def provisioning_error_handler(request: Request, exc: ProvisioningError) -> JSONResponse:
    if exc.kind == ErrorKind.INTERNAL:
        return error_response(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)
    return error_response(exc.kind, exc.message)


async def request_validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    fields = ", ".join(
        ".".join(str(part) for part in error["loc"] if part != "body")
        for error in exc.errors()
    )
    message = f"Invalid input: {fields}" if fields else "Invalid input"
    return error_response(ErrorKind.VALIDATION_FAILED, message)


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    if isinstance(exc, InvalidFileError):
        return error_response(ErrorKind.VALIDATION_FAILED, str(exc))
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return error_response(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return error_response(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    """Register the error handlers on an application."""
    app.add_exception_handler(ProvisioningError, provisioning_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
