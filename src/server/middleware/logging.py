"""Request logging middleware."""
import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("relay.server")

# polled in tight loops; logged at debug to keep INFO readable
QUIET_SUFFIXES = ("/poll",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP request once it completes, with status and duration.

    WebSocket traffic bypasses ``BaseHTTPMiddleware`` and is logged by
    the socket route instead.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        start_time = time.perf_counter()
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        level = logging.DEBUG if path.endswith(QUIET_SUFFIXES) and response.status_code < 400 else logging.INFO
        logger.log(
            level, "%s %s client=%s status=%d duration=%.2fms",
            request.method, path, client_ip, response.status_code, duration_ms,
        )
        return response
