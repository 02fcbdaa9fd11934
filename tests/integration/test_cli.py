"""
CLI integration tests using Click's test runner.

Tests verify that the CLI commands work end-to-end via the Click
CliRunner, with fake weather and wallet collaborators instead of network
access.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import CREATED_SUB, ORIGIN, PRIMARY, TX_HASH, FakeWallet, FakeWeather
from weathermint.chain.abi import encode_mint_call, to_checksum_address
from weathermint.chain.account import AccountSession
from weathermint.cli import cli
from weathermint.errors import RpcError
from weathermint.metadata import encode_token_uri

RECIPIENT = "0x" + "22" * 20
URI = encode_token_uri({"name": "Weather in Paris"})


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def no_env_file(tmp_path: Path):
    """Keep a real ~/.weathermint/.env out of the tests."""
    with patch("weathermint.config.WEATHERMINT_ENV", tmp_path / "missing.env"):
        yield


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestEncodingCommands:
    """Test the offline encode/decode commands."""

    def test_encode_call(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["encode-call", RECIPIENT, URI])
        assert result.exit_code == 0
        assert result.output.strip() == encode_mint_call(RECIPIENT, URI)

    def test_encode_call_bad_selector(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["encode-call", RECIPIENT, URI, "--selector", "0x12"])
        assert result.exit_code != 0

    def test_inspect(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["inspect", encode_mint_call(RECIPIENT, URI)])
        assert result.exit_code == 0
        assert to_checksum_address(RECIPIENT) in result.output
        assert "Weather in Paris" in result.output

    def test_inspect_wrong_selector(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["inspect", encode_mint_call(RECIPIENT, URI, selector="0xdeadbeef")])
        assert result.exit_code == 1
        assert "Cannot decode calldata" in result.output

    def test_inspect_truncated_calldata(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["inspect", "0x40c10f19" + "00" * 40])
        assert result.exit_code == 1
        assert "Cannot decode calldata" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_decode_uri(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["decode-uri", URI])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"name": "Weather in Paris"}

    def test_decode_uri_bad_scheme(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["decode-uri", "https://example.com/1.json"])
        assert result.exit_code == 1

    def test_selector_match(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["selector", "mint(address,uint256)", "--expect", "0x40c10f19"])
        assert result.exit_code == 0
        assert "0x40c10f19" in result.output
        assert "OK" in result.output

    def test_selector_mismatch(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["selector", "mintNFT(address,string)", "--expect", "0x40c10f19"])
        assert result.exit_code == 2
        assert "MISMATCH" in result.output


class TestMintCommand:
    """Test the mint command with fakes patched in."""

    def _invoke(self, runner: CliRunner, weather: FakeWeather, wallet: FakeWallet, *args: str):
        session = AccountSession(wallet, domain=ORIGIN)
        with patch("weathermint.cli._weather_client", return_value=weather), \
                patch("weathermint.cli._session", return_value=session):
            return runner.invoke(cli, ["mint", *args])

    def test_mint_success(self, runner: CliRunner, weather: FakeWeather, wallet: FakeWallet) -> None:
        result = self._invoke(runner, weather, wallet, "--city", "Paris")

        assert result.exit_code == 0, result.output
        assert "SUCCESS" in result.output
        assert TX_HASH in result.output
        assert f"https://sepolia.basescan.org/tx/{TX_HASH}" in result.output
        assert to_checksum_address(CREATED_SUB) in result.output
        assert "18.5°C" in result.output

    def test_mint_default_city(self, runner: CliRunner, weather: FakeWeather, wallet: FakeWallet) -> None:
        result = self._invoke(runner, weather, wallet)
        assert result.exit_code == 0, result.output
        assert weather.cities == ["Washington"]

    def test_mint_dispatch_failure(self, runner: CliRunner, weather: FakeWeather, make_wallet) -> None:
        wallet = make_wallet(errors={"wallet_sendCalls": RpcError(-32000, "insufficient allowance")})
        result = self._invoke(runner, weather, wallet, "--city", "Paris")

        assert result.exit_code == 5
        assert "FAILED" in result.output
        assert "insufficient allowance" in result.output
        assert wallet.count("wallet_addSubAccount") == 1

    def test_mint_weather_failure(self, runner: CliRunner, failing_weather: FakeWeather, wallet: FakeWallet) -> None:
        result = self._invoke(runner, failing_weather, wallet, "--city", "Atlantis")
        assert result.exit_code == 3
        assert wallet.calls == []

    def test_mint_without_api_key(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENWEATHER_API_KEY", "")
        result = runner.invoke(cli, ["mint", "--rpc-url", "https://wallet.test"])
        assert result.exit_code == 2

    def test_mint_with_malformed_selector(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch, weather: FakeWeather, wallet: FakeWallet
    ) -> None:
        monkeypatch.setenv("MINT_SELECTOR", "0x40c10f")
        result = self._invoke(runner, weather, wallet, "--city", "Paris")

        assert result.exit_code == 2
        assert "MINT_SELECTOR" in result.output
        assert wallet.calls == []
        assert weather.cities == []


class TestAccountsCommand:
    def test_accounts(self, runner: CliRunner, wallet: FakeWallet) -> None:
        session = AccountSession(wallet, domain=ORIGIN)
        with patch("weathermint.cli._session", return_value=session):
            result = runner.invoke(cli, ["accounts"])

        assert result.exit_code == 0, result.output
        assert to_checksum_address(PRIMARY) in result.output
        assert to_checksum_address(CREATED_SUB) in result.output

    def test_accounts_rejected(self, runner: CliRunner, make_wallet) -> None:
        wallet = make_wallet(errors={"eth_requestAccounts": RpcError(4001, "User rejected")})
        session = AccountSession(wallet, domain=ORIGIN)
        with patch("weathermint.cli._session", return_value=session):
            result = runner.invoke(cli, ["accounts"])
        assert result.exit_code == 4


class TestPreviewCommand:
    def test_preview(self, runner: CliRunner, weather: FakeWeather) -> None:
        with patch("weathermint.cli._weather_client", return_value=weather):
            result = runner.invoke(cli, ["preview", "--city", "Paris"])

        assert result.exit_code == 0, result.output
        assert "Weather in Paris" in result.output
        assert "data:application/json;base64," in result.output
