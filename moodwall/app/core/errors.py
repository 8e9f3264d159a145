from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class APIError(Exception):
    """Base error carrying the HTTP status and the message shown to clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = GENERIC_ERROR_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class AuthenticationRequired(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "authentication required"


class ValidationFailed(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "invalid request"


class NotFound(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "resource not found"


def error_payload(message: str, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"status": "error", "message": message}
    payload.update(extra)
    return payload


def server_error_response() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(GENERIC_ERROR_MESSAGE),
    )


async def _api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("api error on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc.message))


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(message),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": str(error.get("msg", "invalid value")),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload("invalid request", errors=errors),
    )


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("database failure on %s", request.url.path, exc_info=exc)
    return server_error_response()


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, _api_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)


__all__ = [
    "APIError",
    "AuthenticationRequired",
    "GENERIC_ERROR_MESSAGE",
    "NotFound",
    "ValidationFailed",
    "error_payload",
    "register_exception_handlers",
    "server_error_response",
]
