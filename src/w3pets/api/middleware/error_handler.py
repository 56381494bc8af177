"""
Global error handling.

Every error reaches the client as ``{"message": ...}``. In development the
body also carries an ``error`` field with the underlying detail.
"""

import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import SQLAlchemyError

from w3pets.utils.config import get_settings
from w3pets.utils.exceptions import AuthenticationError, W3PetsError
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


def error_body(message: str, error=None) -> dict:
    """Build the error response body, hiding internals outside development."""
    content = {"message": message}
    if error is not None and get_settings().is_development:
        content["error"] = error
    return content


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status and duration of each request.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} - {duration:.3f}s"
        )
        return response


async def w3pets_error_handler(request: Request, exc: W3PetsError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc}", exc_info=exc.__cause__ is not None)
    else:
        logger.warning(f"{exc.__class__.__name__} on {request.url.path}: {exc}")

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.details or None),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    # loc is ("body" | "query" | "path" | "header", field, ...)
    loc = [str(part) for part in first.get("loc", ())[1:]]
    field = ".".join(loc) or "request"

    if first.get("type") == "missing":
        message = f"Missing required field: {field}"
    else:
        message = f"Invalid field: {field}"

    logger.warning(f"Validation error on {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(message, first.get("msg")),
    )


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"SQLAlchemy error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Server error", str(exc)),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Server error", str(exc)),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the exception handlers to the application."""
    app.add_exception_handler(W3PetsError, w3pets_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
