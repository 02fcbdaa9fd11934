"""
Account session - primary account plus a delegated sub-account.

The sub-account sends calls without a confirmation prompt for each one.
A session connects to the primary account, finds or creates the
sub-account once, and then dispatches batched calls from it.

States:
    disconnected -> connected -> connected with sub-account cached

``close()`` returns the session to disconnected.  The cached sub-account
has a single writer: ``ensure_sub_account()`` holds ``_lock`` for the whole
discovery-or-create sequence, so concurrent callers share one result.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from ..errors import (
    USER_REJECTED_CODE,
    AccountError,
    DispatchError,
    RpcError,
    UserRejectedError,
)
from ..spec.models import SubAccount
from .rpc import WalletTransport

logger = logging.getLogger(__name__)

SEND_CALLS_VERSION = "2.0"


def _sub_accounts_from(response: Any) -> list[dict[str, Any]]:
    """Accept ``{"subAccounts": [...]}`` or a bare list."""
    if isinstance(response, dict):
        response = response.get("subAccounts")
    if not response:
        return []
    return [entry for entry in response if isinstance(entry, dict) and entry.get("address")]


class AccountSession:
    """
    Wallet session over a WalletTransport.

    Args:
        transport: JSON-RPC transport to the wallet
        domain: Origin the sub-account is scoped to
        trust_connect_sub_account: Adopt a second address returned by
            eth_requestAccounts as the sub-account instead of asking
            wallet_getSubAccounts
    """

    def __init__(
        self,
        transport: WalletTransport,
        domain: str,
        trust_connect_sub_account: bool = False,
    ) -> None:
        self.transport = transport
        self.domain = domain
        self.trust_connect_sub_account = trust_connect_sub_account
        self._primary: Optional[str] = None
        self._sub_account: Optional[SubAccount] = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "AccountSession":
        await self.init()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def connected(self) -> bool:
        return self._primary is not None

    @property
    def primary_address(self) -> Optional[str]:
        return self._primary

    @property
    def sub_account(self) -> Optional[SubAccount]:
        return self._sub_account

    async def init(self) -> None:
        if not self.connected:
            await self.connect()

    async def close(self) -> None:
        self._primary = None
        self._sub_account = None

    async def _call(self, method: str, params: list[Any]) -> Any:
        try:
            return await self.transport.request(method, params)
        except RpcError as exc:
            if exc.code == USER_REJECTED_CODE:
                raise UserRejectedError(f"{method} rejected by user: {exc.rpc_message}") from exc
            raise AccountError(f"{method} failed: {exc}") from exc
        except httpx.HTTPError as exc:
            raise AccountError(f"{method} failed: {exc}") from exc

    async def connect(self) -> list[str]:
        """
        Request account access and record the primary address.

        Returns:
            Addresses returned by the wallet, primary first

        Raises:
            UserRejectedError: If the user declines access
            AccountError: If the wallet is unreachable or returns no account
        """
        accounts = await self._call("eth_requestAccounts", [])
        if not accounts:
            raise AccountError("Wallet returned no accounts")

        if self._primary is not None and accounts[0] != self._primary:
            # Sub-accounts belong to one primary; forget the old one.
            self._sub_account = None
        self._primary = accounts[0]
        logger.info("Connected primary account %s", self._primary)

        if self.trust_connect_sub_account and len(accounts) >= 2 and self._sub_account is None:
            self._sub_account = SubAccount(address=accounts[1])
            logger.info("Using sub-account %s from connect response", accounts[1])

        return list(accounts)

    async def ensure_sub_account(self) -> SubAccount:
        """
        Return the cached sub-account, finding or creating it on first use.

        Raises:
            AccountError: If discovery or creation fails
        """
        if self._sub_account is not None:
            return self._sub_account

        async with self._lock:
            # Another caller may have finished while we waited.
            if self._sub_account is not None:
                return self._sub_account

            if not self.connected:
                await self.connect()
                if self._sub_account is not None:
                    return self._sub_account

            response = await self._call(
                "wallet_getSubAccounts",
                [{"account": self._primary, "domain": self.domain}],
            )
            existing = _sub_accounts_from(response)
            if existing:
                sub = SubAccount(address=existing[0]["address"])
                logger.info("Found sub-account %s", sub.address)
            else:
                created = await self._call(
                    "wallet_addSubAccount",
                    [{"account": {"type": "create"}}],
                )
                if not isinstance(created, dict) or not created.get("address"):
                    raise AccountError(f"wallet_addSubAccount returned no address: {created!r}")
                sub = SubAccount(address=created["address"])
                logger.info("Created sub-account %s", sub.address)

            self._sub_account = sub
            return sub

    async def get_sub_account_address(self) -> str:
        return (await self.ensure_sub_account()).address

    async def _dispatch(self, method: str, params: list[Any]) -> Any:
        try:
            return await self.transport.request(method, params)
        except (RpcError, httpx.HTTPError) as exc:
            raise DispatchError(f"{method} failed: {exc}") from exc

    async def dispatch_from_sub_account(self, to: str, data: str, value: str = "0x0") -> Any:
        """
        Send one atomic batched call from the sub-account (wallet_sendCalls).

        Args:
            to: Target contract address
            data: Hex calldata
            value: Hex wei amount

        Returns:
            The wallet's result, unmodified

        Raises:
            AccountError: If the sub-account cannot be resolved
            DispatchError: If the wallet rejects the batch
        """
        sub = await self.ensure_sub_account()
        calls_param = {
            "version": SEND_CALLS_VERSION,
            "atomicRequired": True,
            "from": sub.address,
            "calls": [{"to": to, "data": data, "value": value}],
        }
        logger.debug("wallet_sendCalls from %s to %s", sub.address, to)
        return await self._dispatch("wallet_sendCalls", [calls_param])

    async def send_transaction_from_sub_account(self, to: str, data: str, value: str = "0x0") -> Any:
        """Send a single transaction from the sub-account via eth_sendTransaction."""
        sub = await self.ensure_sub_account()
        tx = {"from": sub.address, "to": to, "data": data, "value": value}
        return await self._dispatch("eth_sendTransaction", [tx])
