"""
Message Store Backend - Request Logging Middleware
==================================================

What:  One access-log line per /messages request.
How:   Writes through the `access` child of the logger injected into
       create_app(), so access lines land wherever the handler logs go.

Line format:
    PATCH /messages/64bd837566b7829eaa7ea650 404 3.2ms [a1b2c3d4] from 127.0.0.1

Level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Request bodies are never logged: message content stays out of the logs.
Paths in `quiet_paths` (by default /health, polled by probes) are not logged.
"""

import logging
import time
from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from message_store.middleware.request_id import request_id_var


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def access_logger(request: Request) -> logging.Logger:
    """Child of the application logger, or the module default before create_app() ran."""
    base = getattr(request.app.state, "logger", None) or logging.getLogger("message_store")
    return base.getChild("access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, quiet_paths: Iterable[str] = ("/health",)):
        super().__init__(app)
        self.quiet_paths = frozenset(quiet_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.quiet_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"

        access_logger(request).log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            rid,
            client_ip,
        )
        return response
