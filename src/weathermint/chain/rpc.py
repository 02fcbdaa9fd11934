"""
JSON-RPC transport for the wallet endpoint.

The account session only needs ``request(method, params)``; anything that
implements WalletTransport can stand in for the HTTP client (an in-process
wallet, a test fake).
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Optional, Protocol

import httpx

from ..errors import ConfigurationError, RpcError

logger = logging.getLogger(__name__)

# Safe to resend after a connection failure: they do not change wallet state.
IDEMPOTENT_METHODS = frozenset({
    "eth_requestAccounts",
    "eth_accounts",
    "eth_chainId",
    "wallet_getSubAccounts",
})


class WalletTransport(Protocol):
    async def request(self, method: str, params: list[Any]) -> Any:
        ...


class HttpWalletTransport:
    """
    JSON-RPC 2.0 over HTTP POST.

    Args:
        rpc_url: Wallet RPC endpoint
        timeout: Per-request timeout in seconds
        max_retries: Extra attempts for idempotent methods on connection errors
        retry_delay: Base backoff in seconds (linear)
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not rpc_url:
            raise ConfigurationError(
                "WALLET_RPC_URL not set. Export it or pass --rpc-url."
            )
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport
        self._ids = itertools.count(1)

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.rpc_url, json=payload)
            response.raise_for_status()

        try:
            data = response.json()
        except ValueError as exc:
            raise RpcError(None, f"malformed JSON-RPC response: {exc}") from exc
        if not isinstance(data, dict):
            raise RpcError(None, f"malformed JSON-RPC response: {data!r}")
        return data

    async def request(self, method: str, params: list[Any]) -> Any:
        """
        Make a JSON-RPC call.

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: If the endpoint returns an error object or a reply
                that is not a JSON object
            httpx.HTTPError: If the request cannot be completed
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        retries = self.max_retries if method in IDEMPOTENT_METHODS else 0

        attempt = 0
        while True:
            try:
                data = await self._post(payload)
                break
            except httpx.TransportError as exc:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.warning("%s failed (%s), retry %d/%d", method, exc, attempt, retries)
                await asyncio.sleep(self.retry_delay * attempt)

        if data.get("error") is not None:
            raise RpcError.from_payload(data["error"])

        logger.debug("%s -> %r", method, data.get("result"))
        return data.get("result")
