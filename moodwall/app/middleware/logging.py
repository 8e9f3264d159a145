from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import uuid4

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..core.errors import server_error_response
from ..metrics import observe_request

ACCESS_LOGGER = "moodwall.request"
REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id, write one access-log line and record metrics.

    A handler exception that escapes the registered exception handlers is
    logged with its traceback and answered with the generic error envelope,
    so clients never see internals.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._access_log = logging.getLogger(ACCESS_LOGGER)

    async def dispatch(  # type: ignore[override]
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = str(uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            response = server_error_response()
            fields = _access_fields(request, request_id, response.status_code, started)
            self._access_log.error("unhandled request failure", extra=fields, exc_info=True)
        else:
            fields = _access_fields(request, request_id, response.status_code, started)
            self._access_log.info("request complete", extra=fields)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _access_fields(
    request: Request, request_id: str, status: int, started: float
) -> dict[str, Any]:
    elapsed = time.perf_counter() - started
    route = request.scope.get("route")
    path = str(route.path) if hasattr(route, "path") else request.url.path
    observe_request(request.method, path, status, elapsed)
    return {
        "request_id": request_id,
        "path": path,
        "method": request.method,
        "status": status,
        "duration_ms": round(elapsed * 1000, 3),
        "user_id": getattr(request.state, "current_user_id", None),
    }
