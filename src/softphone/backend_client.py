"""Async HTTP client for the gateway's softphone routes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from calls.numbers import sanitize_phone_number

LOGGER = logging.getLogger(__name__)


class BackendRequestError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


@dataclass(frozen=True)
class TokenGrant:
    identity: str
    token: str


class VoiceBackendClient:
    """Talks to the gateway the way the browser softphone does."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            response = await client.request(method, path, **kwargs)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = _error_detail(response)
            LOGGER.error("%s %s failed: %s", method, path, detail)
            raise BackendRequestError(response.status_code, detail) from exc
        return response.json()

    async def fetch_token(self, identity: str) -> TokenGrant:
        identity = identity.strip()
        if not identity:
            raise ValueError("identity must not be blank")
        payload = await self._request("POST", "/token", json={"identity": identity})
        return TokenGrant(identity=payload["identity"], token=payload["token"])

    async def list_calls(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/calls")

    async def verify_number(self, raw_number: str) -> dict[str, Any]:
        phone_number = sanitize_phone_number(raw_number)
        if not phone_number:
            raise ValueError(f"no dialable digits in {raw_number!r}")
        return await self._request("POST", "/verify-number", json={"phoneNumber": phone_number})

    async def call_events(self, call_sid: str | None = None) -> list[dict[str, Any]]:
        path = f"/call-events/{call_sid}" if call_sid else "/call-events"
        return await self._request("GET", path)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return response.text
