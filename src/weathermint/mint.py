"""
Weather mint - the end-to-end flow.

    city -> observation -> metadata -> token URI -> calldata
         -> sub-account dispatch -> transaction hash

Each attempt is independent and is never retried.  Errors from the mint
taxonomy end the attempt and are reported on the returned MintOutcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

from .chain.abi import MINT_SELECTOR, encode_mint_call, normalize_selector, verify_selector
from .chain.account import AccountSession
from .errors import ConfigurationError, MintError
from .metadata import build_metadata, encode_token_uri
from .spec.models import NFTMetadata, WeatherObservation
from .weather import resolve_city

logger = logging.getLogger(__name__)

# Field names wallets use for the transaction identifier.
TX_HASH_FIELDS = ("txHash", "hash")


class WeatherSource(Protocol):
    async def observe(self, city: str) -> WeatherObservation:
        ...


def extract_tx_hash(result: Any) -> Optional[str]:
    """Pull a transaction identifier out of a wallet result, if there is one."""
    if isinstance(result, str):
        return result or None
    if isinstance(result, dict):
        for field in TX_HASH_FIELDS:
            value = result.get(field)
            if value:
                return str(value)
    return None


def explorer_tx_url(tx_hash: Optional[str], explorer: str) -> str:
    """Explorer link for a transaction, or "" without a hash."""
    if not tx_hash:
        return ""
    return f"{explorer.rstrip('/')}/tx/{tx_hash}"


@dataclass
class MintOutcome:
    city: str
    observation: Optional[WeatherObservation] = None
    metadata: Optional[NFTMetadata] = None
    token_uri: Optional[str] = None
    calldata: Optional[str] = None
    sub_account: Optional[str] = None
    result: Any = None
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    exception: Optional[MintError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def explorer_url(self, explorer: str) -> str:
        return explorer_tx_url(self.tx_hash, explorer)


class WeatherMinter:
    """
    Mints a weather NFT through a sub-account.

    Args:
        weather: Source of observations (OpenWeatherClient)
        session: Connected or unconnected AccountSession
        contract_address: Mint contract
        selector: 4-byte selector of the mint function
        signature: Canonical signature; when given, the selector is
            checked against it and a mismatch is fatal
    """

    def __init__(
        self,
        weather: WeatherSource,
        session: AccountSession,
        contract_address: str,
        selector: str = MINT_SELECTOR,
        signature: Optional[str] = None,
    ) -> None:
        self.weather = weather
        self.session = session
        self.contract_address = contract_address
        try:
            self.selector = normalize_selector(selector)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid MINT_SELECTOR: {exc}") from exc
        if signature:
            verify_selector(self.selector, signature)
        else:
            logger.warning(
                "Mint selector %s is not checked against a signature "
                "(set MINT_SIGNATURE to verify it)",
                self.selector,
            )

    async def mint(self, city: Optional[str] = None, now: Optional[datetime] = None) -> MintOutcome:
        """
        Run one mint attempt.

        Returns:
            MintOutcome; ``error`` is set and ``tx_hash`` is None when any
            step fails
        """
        outcome = MintOutcome(city=resolve_city(city))
        try:
            await self._run(outcome, now)
        except MintError as exc:
            logger.error("Mint for %s failed: %s", outcome.city, exc)
            outcome.tx_hash = None
            outcome.error = str(exc)
            outcome.exception = exc
        return outcome

    async def _run(self, outcome: MintOutcome, now: Optional[datetime]) -> None:
        outcome.observation = await self.weather.observe(outcome.city)

        outcome.metadata = build_metadata(outcome.observation, now=now)
        outcome.token_uri = encode_token_uri(outcome.metadata)

        outcome.sub_account = await self.session.get_sub_account_address()
        outcome.calldata = encode_mint_call(
            outcome.sub_account, outcome.token_uri, selector=self.selector
        )

        outcome.result = await self.session.dispatch_from_sub_account(
            self.contract_address, outcome.calldata
        )
        outcome.tx_hash = extract_tx_hash(outcome.result)
        if outcome.tx_hash:
            logger.info("Mint for %s sent: %s", outcome.city, outcome.tx_hash)
        else:
            logger.warning("Mint for %s returned no transaction hash: %r", outcome.city, outcome.result)
