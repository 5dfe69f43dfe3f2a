"""Verification of Tribute ``trbt-signature`` headers.

The provider has delivered the signature as hex text, base64 text, and either
of those behind a ``sha256=`` prefix. Every accepted form must still match the
one digest computed from the raw body under the endpoint secret:

1. the header text equals the expected hex or base64 text;
2. a hex-only header decodes to the expected digest bytes;
3. the header decodes as base64, padded or not, to the expected digest bytes.

Malformed encodings are non-matches. The only exception that can escape is
:class:`~tribute_webhook.errors.SignatureConfigurationError` from the signer.
"""

from __future__ import annotations

import re

from tribute_webhook.errors import SignatureDecodeError
from tribute_webhook.security.codec import (
    base64_to_bytes,
    bytes_to_base64,
    bytes_to_hex,
    hex_to_bytes,
)
from tribute_webhook.security.compare import constant_time_equals
from tribute_webhook.security.signing import compute_hmac_sha256

_PREFIX_PATTERN = re.compile(r"^sha256=", re.IGNORECASE)
_HEX_PATTERN = re.compile(r"^[0-9a-fA-F]+$")
_BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")


def clean_signature_header(header_value: str) -> str:
    """Strip whitespace and a leading case-insensitive ``sha256=`` prefix."""
    return _PREFIX_PATTERN.sub("", header_value.strip(), count=1).strip()


def _restore_base64_padding(text: str) -> str:
    stripped = text.rstrip("=")
    return stripped + "=" * (-len(stripped) % 4)


def verify_signature(
    header_signature: str | None,
    secret: str | bytes,
    raw_body: bytes,
) -> bool:
    """Return whether ``header_signature`` authenticates ``raw_body``.

    Args:
        header_signature: Untrusted header value, or ``None`` when absent.
        secret: Shared key for the endpoint that received the request.
        raw_body: Exact request body bytes as received.
    """
    if not header_signature or not secret:
        return False

    cleaned = clean_signature_header(header_signature)
    if not cleaned:
        return False

    expected = compute_hmac_sha256(secret, raw_body)
    expected_hex = bytes_to_hex(expected)
    expected_base64 = bytes_to_base64(expected)

    header_bytes = cleaned.encode("utf-8")
    if constant_time_equals(header_bytes, expected_hex.encode("utf-8")):
        return True
    if constant_time_equals(header_bytes, expected_base64.encode("utf-8")):
        return True

    if _HEX_PATTERN.fullmatch(cleaned):
        try:
            candidate = hex_to_bytes(cleaned)
        except SignatureDecodeError:
            candidate = None
        if candidate is not None and constant_time_equals(candidate, expected):
            return True

    if not _BASE64_PATTERN.fullmatch(cleaned):
        return False
    try:
        candidate = base64_to_bytes(_restore_base64_padding(cleaned))
    except SignatureDecodeError:
        return False
    return constant_time_equals(candidate, expected)
