from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import RegistryError

logger = logging.getLogger(__name__)


def error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any failure as ``{"message": ...}`` with the matching status."""
    if isinstance(exc, RegistryError):
        status_code = exc.status_code
        message = exc.message
    elif isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        message = str(exc.detail)
    elif isinstance(exc, RequestValidationError):
        status_code = 400
        message = "Invalid request body"
    else:
        status_code = 500
        message = "Server error"

    if status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}",
            exc_info=not isinstance(exc, RegistryError),
        )
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code}: {message}")

    return JSONResponse({"message": message}, status_code=status_code)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RegistryError, error_handler)
    app.add_exception_handler(RequestValidationError, error_handler)
    app.add_exception_handler(StarletteHTTPException, error_handler)
    app.add_exception_handler(Exception, error_handler)
