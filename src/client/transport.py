"""HTTP transport for the polling API: pooled connections, retries with jittered backoff."""

import asyncio
import logging
import random
from typing import Any

import httpx

from .exceptions import RateLimitError, TransportError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({408, 500, 502, 503, 504})


def _header_int(headers: httpx.Headers, name: str) -> int | None:
    value = headers.get(name)
    return int(value) if value is not None and value.isdigit() else None


def _decode(resp: httpx.Response) -> dict | None:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return None


class Transport:
    """Thin wrapper over ``httpx.AsyncClient`` bound to one relay base URL.

    ``transport`` lets callers substitute an in-process ASGI or mock
    transport for the network one.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, max_retries: int = 3,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "Transport":
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=5),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _backoff(attempt: int) -> float:
        delay = min(0.5 * (2 ** attempt), 10.0)
        return max(0.05, delay + delay * 0.25 * (2 * random.random() - 1))

    async def request(self, method: str, path: str, data: dict | None = None,
                      params: dict | None = None, headers: dict | None = None,
                      retry: bool = True) -> tuple[int, dict | None]:
        """Send one request, retrying timeouts, network errors and 408/5xx.

        Returns:
            Status code and decoded JSON body (None if empty or not JSON).

        Raises:
            RateLimitError: On 429; never retried.
            TransportError: When every attempt failed at the network level.
        """
        if not self._client:
            raise TransportError("Transport not initialized")
        attempts = self._max_retries if retry else 1
        last_err: Exception | None = None
        for attempt in range(attempts):
            final = attempt == attempts - 1
            try:
                resp = await self._client.request(method, path, json=data, params=params, headers=headers)
            except (httpx.TimeoutException, httpx.RequestError) as e:
                last_err = e
                logger.debug("%s %s failed (attempt %d/%d): %s", method, path, attempt + 1, attempts, e)
                if not final:
                    await asyncio.sleep(self._backoff(attempt))
                continue
            if resp.status_code == 429:
                raise RateLimitError(
                    "Rate limited",
                    retry_after=_header_int(resp.headers, "Retry-After"),
                    limit=_header_int(resp.headers, "X-RateLimit-Limit"),
                    remaining=_header_int(resp.headers, "X-RateLimit-Remaining"),
                )
            if resp.status_code in RETRYABLE_STATUS and not final:
                logger.debug("%s %s returned %d, retrying", method, path, resp.status_code)
                await asyncio.sleep(self._backoff(attempt))
                continue
            return resp.status_code, _decode(resp)
        raise TransportError(f"Request failed after {attempts} attempts: {last_err}")
