"""
weathermint CLI

Mint the current weather of a city as an NFT through a delegated
sub-account, without a wallet prompt per transaction.

Commands:
  mint        - Fetch weather and mint it from the sub-account
  preview     - Show the metadata and token URI for a city (no wallet)
  accounts    - Connect and show primary / sub-account
  encode-call - Encode mint calldata for a recipient and token URI
  inspect     - Decode mint calldata
  decode-uri  - Print the JSON embedded in a token URI
  selector    - Compute a function selector
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Optional

import click

from .chain.abi import (
    MINT_SELECTOR,
    decode_mint_call,
    encode_mint_call,
    function_selector,
    normalize_selector,
    to_checksum_address,
)
from .chain.account import AccountSession
from .chain.rpc import HttpWalletTransport
from .config import Settings, load_settings
from .errors import MintError
from .metadata import build_metadata, decode_token_uri, encode_token_uri
from .mint import WeatherMinter
from .weather import OpenWeatherClient, resolve_city


# ============ Constants ============

VERSION = "0.1.0"


# ============ Helpers ============


def _settings(ctx: click.Context, **overrides: object) -> Settings:
    settings: Settings = ctx.obj["settings"]
    return settings.override(**overrides)


def _fail(exc: MintError) -> None:
    click.secho(f"ERROR: {exc}", fg="red", err=True)
    sys.exit(exc.exit_code)


def _weather_client(settings: Settings) -> OpenWeatherClient:
    return OpenWeatherClient(
        api_key=settings.openweather_api_key,
        base_url=settings.openweather_base_url,
        timeout_s=settings.request_timeout,
        max_retries=settings.max_retries,
    )


def _session(settings: Settings) -> AccountSession:
    transport = HttpWalletTransport(
        settings.wallet_rpc_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
    )
    return AccountSession(
        transport,
        domain=settings.app_origin,
        trust_connect_sub_account=settings.trust_connect_sub_account,
    )


# ============ Main CLI Group ============


@click.group()
@click.version_option(version=VERSION, prog_name="weathermint")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """weathermint - weather NFTs minted from a sub-account."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = load_settings()
    except MintError as exc:
        _fail(exc)


# ============ Mint ============


@cli.command()
@click.option("--city", default="", help="City name (default: Washington)")
@click.option("--api-key", default=None, help="OpenWeatherMap API key")
@click.option("--rpc-url", default=None, help="Wallet JSON-RPC URL")
@click.option("--contract", default=None, help="Mint contract address")
@click.pass_context
def mint(
    ctx: click.Context,
    city: str,
    api_key: Optional[str],
    rpc_url: Optional[str],
    contract: Optional[str],
) -> None:
    """Fetch the weather for CITY and mint it from the sub-account."""
    settings = _settings(
        ctx, openweather_api_key=api_key, wallet_rpc_url=rpc_url, contract_address=contract
    )

    try:
        weather = _weather_client(settings)
        session = _session(settings)
        minter = WeatherMinter(
            weather,
            session,
            settings.contract_address,
            selector=settings.mint_selector,
            signature=settings.mint_signature,
        )
    except MintError as exc:
        _fail(exc)

    async def run():
        # The session connects lazily so connection errors land on the outcome.
        try:
            return await minter.mint(city)
        finally:
            await session.close()

    outcome = asyncio.run(run())

    click.echo("=== weathermint ===")
    click.echo("")
    if outcome.metadata is not None:
        click.echo(f"  City: {outcome.metadata.trait('City')}")
        click.echo(f"  Condition: {outcome.metadata.trait('Condition')}")
        click.echo(f"  Temperature: {outcome.metadata.trait('Temperature')}")
    if outcome.sub_account:
        click.echo(f"  Sub-account: {to_checksum_address(outcome.sub_account)}")
    click.echo("")

    if not outcome.ok:
        click.secho(f"FAILED: {outcome.error}", fg="red")
        sys.exit(outcome.exception.exit_code if outcome.exception else 1)

    if outcome.tx_hash:
        click.secho("SUCCESS: Mint sent!", fg="green")
        click.echo(f"  TX: {outcome.tx_hash}")
        click.echo(f"  Link: {outcome.explorer_url(settings.explorer)}")
    else:
        click.secho("Mint sent, but the wallet returned no transaction hash.", fg="yellow")
        click.echo(f"  Result: {outcome.result!r}")


# ============ Preview ============


@cli.command()
@click.option("--city", default="", help="City name (default: Washington)")
@click.option("--api-key", default=None, help="OpenWeatherMap API key")
@click.pass_context
def preview(ctx: click.Context, city: str, api_key: Optional[str]) -> None:
    """Show the metadata and token URI a mint would use."""
    settings = _settings(ctx, openweather_api_key=api_key)
    try:
        client = _weather_client(settings)
        observation = asyncio.run(client.observe(resolve_city(city)))
    except MintError as exc:
        _fail(exc)

    metadata = build_metadata(observation)
    click.echo(json.dumps(metadata.to_dict(), indent=2, ensure_ascii=False))
    click.echo("")
    click.echo(encode_token_uri(metadata))


# ============ Accounts ============


@cli.command()
@click.option("--rpc-url", default=None, help="Wallet JSON-RPC URL")
@click.pass_context
def accounts(ctx: click.Context, rpc_url: Optional[str]) -> None:
    """Connect the wallet and show the primary and sub-account."""
    settings = _settings(ctx, wallet_rpc_url=rpc_url)

    async def run():
        async with _session(settings) as session:
            sub = await session.ensure_sub_account()
            return session.primary_address, sub.address

    try:
        primary, sub = asyncio.run(run())
    except MintError as exc:
        _fail(exc)

    click.echo(f"Primary:     {to_checksum_address(primary)}")
    click.echo(f"Sub-account: {to_checksum_address(sub)}")


# ============ Encoding tools ============


@cli.command("encode-call")
@click.argument("recipient")
@click.argument("token_uri")
@click.option("--selector", default=MINT_SELECTOR, show_default=True, help="Function selector")
def encode_call(recipient: str, token_uri: str, selector: str) -> None:
    """Encode mint calldata for RECIPIENT and TOKEN_URI."""
    try:
        selector = normalize_selector(selector)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--selector")
    click.echo(encode_mint_call(recipient, token_uri, selector=selector))


@cli.command()
@click.argument("calldata")
@click.option("--selector", default=MINT_SELECTOR, show_default=True, help="Function selector")
def inspect(calldata: str, selector: str) -> None:
    """Decode mint CALLDATA and the metadata inside its token URI."""
    try:
        recipient, token_uri = decode_mint_call(calldata, selector=selector)
    except ValueError as exc:
        raise click.ClickException(f"Cannot decode calldata: {exc}")

    click.echo(f"Recipient: {recipient}")
    click.echo(f"Token URI: {token_uri}")
    try:
        document = decode_token_uri(token_uri)
    except ValueError:
        return
    click.echo(json.dumps(document, indent=2, ensure_ascii=False))


@cli.command("decode-uri")
@click.argument("token_uri")
def decode_uri(token_uri: str) -> None:
    """Print the JSON document embedded in TOKEN_URI."""
    try:
        document = decode_token_uri(token_uri)
    except ValueError as exc:
        raise click.ClickException(str(exc))
    click.echo(json.dumps(document, indent=2, ensure_ascii=False))


@cli.command()
@click.argument("signature")
@click.option("--expect", default=None, help="Selector to compare against")
def selector(signature: str, expect: Optional[str]) -> None:
    """Compute the 4-byte selector for SIGNATURE."""
    computed = function_selector(signature)
    click.echo(computed)
    if expect is not None:
        try:
            expect = normalize_selector(expect)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--expect")
        if expect != computed:
            click.secho(f"MISMATCH: expected {expect}", fg="red")
            sys.exit(2)
        click.secho("OK", fg="green")


# ============ Entry Points ============


def main() -> None:
    """weathermint CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
