"""Shared fakes for wallet and weather collaborators."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import pytest

from weathermint.errors import WeatherFetchError
from weathermint.spec.models import WeatherObservation

PRIMARY = "0x" + "11" * 20
SUB = "0x" + "22" * 20
CREATED_SUB = "0x" + "33" * 20
TX_HASH = "0x" + "ab" * 32
ORIGIN = "https://weather.example"


class FakeWallet:
    """In-memory WalletTransport recording every request."""

    def __init__(
        self,
        accounts: Optional[list[str]] = None,
        sub_accounts: Optional[list[dict[str, Any]]] = None,
        created: Optional[dict[str, Any]] = None,
        send_result: Any = None,
        errors: Optional[dict[str, Exception]] = None,
    ) -> None:
        self.accounts = accounts if accounts is not None else [PRIMARY]
        self.sub_accounts = sub_accounts if sub_accounts is not None else []
        self.created = created if created is not None else {"address": CREATED_SUB}
        self.send_result = send_result if send_result is not None else {"txHash": TX_HASH}
        self.errors = errors or {}
        self.calls: list[tuple[str, list[Any]]] = []

    async def request(self, method: str, params: list[Any]) -> Any:
        self.calls.append((method, params))
        # Yield so concurrent callers interleave like a real round trip.
        await asyncio.sleep(0)
        if method in self.errors:
            raise self.errors[method]
        if method == "eth_requestAccounts":
            return list(self.accounts)
        if method == "wallet_getSubAccounts":
            return {"subAccounts": list(self.sub_accounts)}
        if method == "wallet_addSubAccount":
            return dict(self.created)
        if method == "wallet_sendCalls":
            return self.send_result
        if method == "eth_sendTransaction":
            return TX_HASH
        raise AssertionError(f"unexpected method {method}")

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]

    def count(self, method: str) -> int:
        return self.methods().count(method)


class FakeWeather:
    """WeatherSource returning a fixed observation."""

    def __init__(
        self,
        observation: Optional[WeatherObservation] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.observation = observation or WeatherObservation("Paris", "clear sky", 18.5)
        self.error = error
        self.cities: list[str] = []

    async def observe(self, city: str) -> WeatherObservation:
        self.cities.append(city)
        if self.error is not None:
            raise self.error
        return self.observation


@pytest.fixture()
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture()
def make_wallet():
    return FakeWallet


@pytest.fixture()
def weather() -> FakeWeather:
    return FakeWeather()


@pytest.fixture()
def failing_weather() -> FakeWeather:
    return FakeWeather(error=WeatherFetchError("Current weather failed (404): city not found"))
