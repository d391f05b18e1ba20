"""RelayClient: async client for the polling API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from .exceptions import RequestRejectedError, RoomFullError, RoomNotFoundError, TransportError
from .transport import Transport

_ERRORS: dict[str, type[RequestRejectedError]] = {
    "ROOM_NOT_FOUND": RoomNotFoundError,
    "ROOM_FULL": RoomFullError,
}


@dataclass(frozen=True)
class PollResult:
    messages: list[dict[str, Any]]
    partner_present: bool


class RelayClient:
    """Client for the relay's HTTP endpoints. Must be used as async context manager."""

    def __init__(self, base_url: str, timeout: float = 10.0, max_retries: int = 3,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._base_url = base_url
        self._transport = Transport(base_url, timeout, max_retries, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "RelayClient":
        await self._transport.__aenter__()
        return self

    async def __aexit__(self, *args) -> None:
        await self._transport.__aexit__(*args)

    async def create_room(self) -> str:
        body = await self._call("POST", "/rooms", retry=False)
        return body["code"]

    async def join_room(self, code: str) -> None:
        await self._call("POST", f"/rooms/{code}/join", retry=False)

    async def send(self, code: str, role: str, data: Any) -> str:
        body = await self._call("POST", f"/rooms/{code}/send", {"role": role, "data": data}, retry=False)
        return body["status"]

    async def poll(self, code: str, role: str) -> PollResult:
        body = await self._call("GET", f"/rooms/{code}/poll", params={"role": role}, retry=False)
        return PollResult(messages=body["messages"], partner_present=body["partner_present"])

    async def leave(self, code: str, role: str) -> None:
        await self._call("POST", f"/rooms/{code}/leave", {"role": role}, retry=False)

    async def health(self) -> dict[str, Any]:
        return await self._call("GET", "/health")

    async def close_room(self, code: str, admin_secret: str) -> None:
        await self._call("DELETE", f"/rooms/{code}", headers={"X-Admin-Secret": admin_secret}, retry=False)

    async def _call(self, method: str, path: str, data: dict | None = None,
                    params: dict | None = None, headers: dict | None = None,
                    retry: bool = True) -> dict[str, Any]:
        status, body = await self._transport.request(method, path, data, params=params, headers=headers, retry=retry)
        if 200 <= status < 300:
            return body or {}
        error = (body or {}).get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            code = error.get("code", "UNKNOWN")
            raise _ERRORS.get(code, RequestRejectedError)(error.get("message", code), status, code)
        raise TransportError(f"{method} {path} failed with status {status}", status_code=status)
