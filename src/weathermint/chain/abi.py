"""
Mint call encoding.

The mint call has one fixed shape, ``(address, string)``, so calldata is
laid out by hand:

    selector            4 bytes
    recipient          32 bytes  left-zero-padded
    offset of string   32 bytes  always 0x40 (one static head word)
    string length      32 bytes  UTF-8 byte count, big-endian
    string bytes       n bytes   right-zero-padded to a 32-byte boundary

Keccak-256 is only used to check a configured selector against its
signature text; the encoder itself never hashes.
"""

from __future__ import annotations

import logging

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_hash.auto import keccak

from ..errors import SelectorMismatchError
from ..utils import ceil32, strip_0x

logger = logging.getLogger(__name__)

MINT_SELECTOR = "0x40c10f19"
MINT_ARG_TYPES = ("address", "string")

# Head size of the argument block: one static word plus one offset word.
DYNAMIC_OFFSET = (32 * len(MINT_ARG_TYPES)).to_bytes(32, "big").hex()


def _keccak256(data: bytes) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(data)


def function_selector(signature: str) -> str:
    """
    Compute the 4-byte selector for a canonical signature.

    Args:
        signature: e.g. "mint(address,uint256)" (no spaces, no arg names)

    Returns:
        0x-prefixed lowercase hex selector
    """
    return "0x" + _keccak256(signature.encode("utf-8"))[:4].hex()


def normalize_selector(selector: str) -> str:
    body = strip_0x(selector).lower()
    if len(body) != 8:
        raise ValueError(f"Selector must be 4 bytes, got {selector!r}")
    int(body, 16)
    return "0x" + body


def verify_selector(selector: str, signature: str) -> str:
    """
    Check a configured selector against its signature.

    Returns:
        The normalized selector

    Raises:
        SelectorMismatchError: If keccak256(signature)[:4] differs
    """
    expected = normalize_selector(selector)
    computed = function_selector(signature)
    if computed != expected:
        raise SelectorMismatchError(expected, signature, computed)
    logger.debug("Selector %s verified against %s", expected, signature)
    return expected


def encode_mint_call(recipient: str, token_uri: str, selector: str = MINT_SELECTOR) -> str:
    """
    ABI-encode a mint call to hex calldata.

    The recipient is not length-checked: anything other than 20 bytes of
    hex is padded as given.

    Args:
        recipient: Hex address, with or without 0x
        token_uri: String argument
        selector: 4-byte function selector

    Returns:
        0x-prefixed hex calldata
    """
    head = strip_0x(recipient).lower().rjust(64, "0")

    data = token_uri.encode("utf-8")
    length = len(data).to_bytes(32, "big").hex()
    body = data.hex().ljust(ceil32(len(data)) * 2, "0")

    return "0x" + strip_0x(selector).lower() + head + DYNAMIC_OFFSET + length + body


def decode_mint_call(calldata: str, selector: str = MINT_SELECTOR) -> tuple[str, str]:
    """
    Decode mint calldata back into (recipient, token_uri).

    Raises:
        ValueError: If the selector does not match or the arguments
            cannot be decoded
    """
    raw = bytes.fromhex(strip_0x(calldata))
    if raw[:4].hex() != strip_0x(selector).lower():
        raise ValueError(f"Calldata selector 0x{raw[:4].hex()} is not {selector}")

    try:
        recipient, token_uri = decode(list(MINT_ARG_TYPES), raw[4:])
    except DecodingError as exc:
        raise ValueError(f"Malformed mint arguments: {exc}") from exc
    return recipient, token_uri


def to_checksum_address(address: str) -> str:
    """Convert an address to EIP-55 checksummed format."""
    addr = strip_0x(address).lower()
    addr_hash = _keccak256(addr.encode("utf-8")).hex()
    result = "0x"
    for i, c in enumerate(addr):
        if c in "abcdef":
            result += c.upper() if int(addr_hash[i], 16) >= 8 else c
        else:
            result += c
    return result
