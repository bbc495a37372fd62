"""
Sui address helpers.

Sui addresses and object ids are 32 bytes, written as 0x-prefixed lowercase hex.
Short forms such as ``0x6`` (the clock) are left-padded to full width.
"""

import base64
import binascii
import hashlib
from typing import Any

from eth_utils import add_0x_prefix, encode_hex, is_hex, remove_0x_prefix

ADDRESS_LENGTH = 32
ED25519_FLAG = 0x00


def normalize_address(value: str | bytes) -> str:
    """Return ``value`` as a 0x-prefixed, 64 hex digit, lowercase address.

    Raises:
        ValueError: If the value is not valid hex or is longer than 32 bytes.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) > ADDRESS_LENGTH:
            raise ValueError(f"Address too long: {len(value)} bytes")
        return encode_hex(bytes(value).rjust(ADDRESS_LENGTH, b"\x00"))

    if not isinstance(value, str):
        raise ValueError(f"Address must be str or bytes, got {type(value).__name__}")

    raw = remove_0x_prefix(value.strip()).lower()
    if not raw or not is_hex(raw):
        raise ValueError(f"Invalid hex address: {value!r}")
    if len(raw) > ADDRESS_LENGTH * 2:
        raise ValueError(f"Address too long: {value!r}")
    return add_0x_prefix(raw.rjust(ADDRESS_LENGTH * 2, "0"))


def address_bytes(value: str | bytes) -> bytes:
    """Return the 32 raw bytes of an address."""
    return bytes.fromhex(remove_0x_prefix(normalize_address(value)))


def decode_address_value(value: Any) -> str:
    """Normalize an address returned by an RPC read.

    Reads may hand back raw bytes, a list of byte values, a base64 string or
    a hex string depending on the decoder used.
    """
    if isinstance(value, (bytes, bytearray)):
        return normalize_address(bytes(value))
    if isinstance(value, list) and all(isinstance(b, int) for b in value):
        return normalize_address(bytes(value))
    if isinstance(value, str):
        if value.startswith("0x"):
            return normalize_address(value)
        try:
            decoded = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            decoded = b""
        if len(decoded) == ADDRESS_LENGTH:
            return normalize_address(decoded)
        return normalize_address(value)
    raise ValueError(f"Cannot decode address from {type(value).__name__}")


def address_from_public_key(public_key: bytes) -> str:
    """Derive the Sui address of an Ed25519 public key.

    The address is blake2b-256 over the signature scheme flag followed by the key.
    """
    if len(public_key) != 32:
        raise ValueError(f"Ed25519 public key must be 32 bytes, got {len(public_key)}")
    digest = hashlib.blake2b(bytes([ED25519_FLAG]) + public_key, digest_size=ADDRESS_LENGTH).digest()
    return encode_hex(digest)
