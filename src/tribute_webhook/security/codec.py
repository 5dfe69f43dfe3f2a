"""Hex and base64 conversions for signature values."""

from __future__ import annotations

import base64
import binascii

from tribute_webhook.errors import SignatureDecodeError


def bytes_to_hex(data: bytes) -> str:
    """Return lowercase hex with two characters per byte and no separators."""
    return binascii.hexlify(data).decode("ascii")


def hex_to_bytes(text: str) -> bytes:
    """Decode a hex string, rejecting odd lengths and non-hex characters."""
    if len(text) % 2 != 0:
        raise SignatureDecodeError("Hex value must contain an even number of characters")
    try:
        return binascii.unhexlify(text)
    except (binascii.Error, ValueError) as exc:
        raise SignatureDecodeError("Hex value contains invalid characters") from exc


def bytes_to_base64(data: bytes) -> str:
    """Return standard padded base64."""
    return base64.b64encode(data).decode("ascii")


def base64_to_bytes(text: str) -> bytes:
    """Decode standard padded base64, rejecting stray characters and bad padding."""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SignatureDecodeError("Invalid base64 value") from exc
