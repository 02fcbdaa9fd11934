__all__ = [
    # Models
    "WeatherObservation",
    "Attribute",
    "NFTMetadata",
    "SubAccount",
    # Weather
    "OpenWeatherClient",
    "parse_observation",
    "resolve_city",
    # Metadata
    "build_metadata",
    "encode_token_uri",
    "decode_token_uri",
    # Calldata
    "MINT_SELECTOR",
    "encode_mint_call",
    "decode_mint_call",
    "function_selector",
    "verify_selector",
    # Accounts
    "AccountSession",
    "HttpWalletTransport",
    "WalletTransport",
    # Mint
    "MintOutcome",
    "WeatherMinter",
    "extract_tx_hash",
    "explorer_tx_url",
    # Config
    "Settings",
    "load_settings",
    # Errors
    "MintError",
    "ConfigurationError",
    "SelectorMismatchError",
    "WeatherFetchError",
    "MalformedWeatherDataError",
    "AccountError",
    "UserRejectedError",
    "DispatchError",
    "RpcError",
]

from .errors import (
    AccountError,
    ConfigurationError,
    DispatchError,
    MalformedWeatherDataError,
    MintError,
    RpcError,
    SelectorMismatchError,
    UserRejectedError,
    WeatherFetchError,
)
from .config import Settings, load_settings
from .spec.models import Attribute, NFTMetadata, SubAccount, WeatherObservation
from .weather import OpenWeatherClient, parse_observation, resolve_city
from .metadata import build_metadata, decode_token_uri, encode_token_uri
from .chain.abi import (
    MINT_SELECTOR,
    decode_mint_call,
    encode_mint_call,
    function_selector,
    verify_selector,
)
from .chain.account import AccountSession
from .chain.rpc import HttpWalletTransport, WalletTransport
from .mint import MintOutcome, WeatherMinter, explorer_tx_url, extract_tx_hash
