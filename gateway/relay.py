"""Byte-transparent JSON-RPC relay to the Soroban RPC node."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from gateway.errors import NetworkError

logger = logging.getLogger(__name__)

USER_AGENT = "Soroban-Gateway-Relay/1.0"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@dataclass(frozen=True)
class RelayResponse:
    status_code: int
    body: bytes
    content_type: str


class RpcRelay:
    """Forwards request bodies upstream without parsing them."""

    def __init__(
        self,
        upstream_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.upstream_url = upstream_url
        self.timeout = timeout
        self._transport = transport

    async def forward(
        self,
        method: str,
        body: bytes,
        content_type: Optional[str] = None,
    ) -> RelayResponse:
        headers = {
            "Content-Type": content_type or "application/json",
            "User-Agent": USER_AGENT,
        }
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                upstream = await client.request(method, self.upstream_url, content=body, headers=headers)
        except httpx.RequestError as exc:
            logger.error("Soroban RPC relay error: %s", exc)
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc

        return RelayResponse(
            status_code=upstream.status_code,
            body=upstream.content,
            content_type=upstream.headers.get("content-type", "application/json"),
        )
