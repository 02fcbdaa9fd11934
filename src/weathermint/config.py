"""
Configuration for the weathermint pipeline.

Values come from the environment, optionally seeded from
~/.weathermint/.env (KEY=VALUE lines).  CLI options override them per
command via click's ``envvar`` support.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError


# Default config directory
WEATHERMINT_DIR = Path.home() / ".weathermint"
WEATHERMINT_ENV = WEATHERMINT_DIR / ".env"

DEFAULT_OPENWEATHER_URL = "https://api.openweathermap.org"
DEFAULT_CONTRACT_ADDRESS = "0xb4F800E5647f9B82Be98068cb98c516f871bb7B8"
DEFAULT_SELECTOR = "0x40c10f19"
DEFAULT_CHAIN_ID = 84532  # Base Sepolia
DEFAULT_APP_ORIGIN = "http://localhost"

EXPLORERS = {
    8453: "https://basescan.org",
    84532: "https://sepolia.basescan.org",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    openweather_api_key: str = ""
    openweather_base_url: str = DEFAULT_OPENWEATHER_URL
    wallet_rpc_url: str = ""
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    mint_selector: str = DEFAULT_SELECTOR
    mint_signature: Optional[str] = None
    chain_id: int = DEFAULT_CHAIN_ID
    explorer_url: str = ""
    app_origin: str = DEFAULT_APP_ORIGIN
    request_timeout: float = 30.0
    max_retries: int = 2
    trust_connect_sub_account: bool = False

    @property
    def explorer(self) -> str:
        """Explorer base URL, derived from the chain id when not set."""
        if self.explorer_url:
            return self.explorer_url.rstrip("/")
        return EXPLORERS.get(self.chain_id, EXPLORERS[DEFAULT_CHAIN_ID])

    def override(self, **changes: object) -> "Settings":
        """Return a copy with the non-None values of ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw, 0)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_path: Path to .env file (default: ~/.weathermint/.env).
                  Existing environment variables take precedence.

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed
    """
    env_path = env_path or WEATHERMINT_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)

    max_retries = _env_int("MAX_RETRIES", 2)
    if max_retries < 0:
        raise ConfigurationError("MAX_RETRIES must not be negative")

    return Settings(
        openweather_api_key=os.environ.get("OPENWEATHER_API_KEY", ""),
        openweather_base_url=os.environ.get("OPENWEATHER_BASE_URL", DEFAULT_OPENWEATHER_URL),
        wallet_rpc_url=os.environ.get("WALLET_RPC_URL", ""),
        contract_address=os.environ.get("MINT_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS),
        mint_selector=os.environ.get("MINT_SELECTOR", DEFAULT_SELECTOR),
        mint_signature=os.environ.get("MINT_SIGNATURE") or None,
        chain_id=_env_int("CHAIN_ID", DEFAULT_CHAIN_ID),
        explorer_url=os.environ.get("EXPLORER_URL", ""),
        app_origin=os.environ.get("APP_ORIGIN", DEFAULT_APP_ORIGIN),
        request_timeout=_env_float("REQUEST_TIMEOUT", 30.0),
        max_retries=max_retries,
        trust_connect_sub_account=(
            os.environ.get("TRUST_CONNECT_SUB_ACCOUNT", "").strip().lower() in _TRUE_VALUES
        ),
    )
