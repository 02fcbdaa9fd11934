"""
Token metadata - builds the NFT metadata record and its data URI.

The token URI is self-contained: the compact JSON document is carried
inline as base64 of its UTF-8 bytes, so no storage backend is involved.
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from .spec.models import Attribute, NFTMetadata, WeatherObservation
from .utils import format_number, format_rfc3339, utc_now_rfc3339

TOKEN_URI_PREFIX = "data:application/json;base64,"


def build_metadata(
    observation: WeatherObservation, now: Optional[datetime] = None
) -> NFTMetadata:
    """
    Build the metadata record for one observation.

    Args:
        observation: Parsed weather observation
        now: Timestamp for the Date trait (default: current UTC time)

    Returns:
        NFTMetadata with the City, Temperature, Condition, Date traits
    """
    temperature = f"{format_number(observation.temperature)}°C"
    timestamp = format_rfc3339(now) if now is not None else utc_now_rfc3339()

    return NFTMetadata(
        name=f"Weather in {observation.name}",
        description=(
            f"Forecast for {observation.name}: {observation.description}, {temperature}"
        ),
        attributes=(
            Attribute("City", observation.name),
            Attribute("Temperature", temperature),
            Attribute("Condition", observation.description),
            Attribute("Date", timestamp),
        ),
    )


def _serialize(metadata: Union[NFTMetadata, Mapping[str, Any]]) -> str:
    payload = metadata.to_dict() if isinstance(metadata, NFTMetadata) else metadata
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def encode_token_uri(metadata: Union[NFTMetadata, Mapping[str, Any]]) -> str:
    """Serialize metadata into a ``data:application/json;base64,`` URI."""
    raw = _serialize(metadata).encode("utf-8")
    return TOKEN_URI_PREFIX + base64.b64encode(raw).decode("ascii")


def decode_token_uri(token_uri: str) -> dict[str, Any]:
    """
    Parse the JSON document embedded in a token URI.

    Raises:
        ValueError: If the scheme is wrong or the payload is not
            base64-encoded UTF-8 JSON
    """
    if not token_uri.startswith(TOKEN_URI_PREFIX):
        raise ValueError(f"Token URI must start with {TOKEN_URI_PREFIX!r}")

    try:
        raw = base64.b64decode(token_uri[len(TOKEN_URI_PREFIX):], validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 payload: {exc}") from exc

    return json.loads(raw.decode("utf-8"))
