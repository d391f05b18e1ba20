"""Per-client request rate limiting for the polling API."""
import logging
import time
from collections import defaultdict, deque
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.server.models.responses import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0
EXEMPT_PATHS = frozenset({"/health"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding one-minute window of HTTP requests per client address.

    A polling peer makes one request per poll, so the limit bounds how
    aggressively a single address may poll. WebSocket frames are not
    HTTP requests and never count against it.
    """

    def __init__(self, app: ASGIApp, requests_per_minute: int = 600) -> None:
        super().__init__(app)
        self._limit = requests_per_minute
        self._windows: dict[str, deque[float]] = defaultdict(deque)
        self._last_sweep = time.monotonic()

    def _prune(self, window: deque[float], now: float) -> None:
        while window and window[0] <= now - WINDOW_SECONDS:
            window.popleft()

    def _sweep(self, now: float) -> None:
        """Forget clients with no request inside the current window."""
        for client_ip in list(self._windows):
            self._prune(self._windows[client_ip], now)
            if not self._windows[client_ip]:
                del self._windows[client_ip]
        self._last_sweep = now

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        if now - self._last_sweep >= WINDOW_SECONDS:
            self._sweep(now)
        window = self._windows[client_ip]
        self._prune(window, now)

        if len(window) >= self._limit:
            retry_after = max(1, int(window[0] + WINDOW_SECONDS - now) + 1)
            logger.warning("Rate limit hit for %s on %s %s", client_ip, request.method, request.url.path)
            body = ErrorResponse(error=ErrorDetail(
                code="RATE_LIMITED",
                message="Rate limit exceeded",
                details={"retry_after": retry_after},
            ))
            return JSONResponse(
                status_code=429,
                content=body.model_dump(),
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(self._limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        window.append(now)
        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self._limit)
        response.headers["X-RateLimit-Remaining"] = str(self._limit - len(window))
        return response
