"""HMAC-SHA256 signing of raw webhook bodies."""

from __future__ import annotations

import hashlib
import hmac

from tribute_webhook.errors import SignatureConfigurationError
from tribute_webhook.security.codec import bytes_to_hex

DIGEST_SIZE = hashlib.sha256().digest_size


def _key_bytes(secret: str | bytes) -> bytes:
    if isinstance(secret, bytes):
        return secret
    if isinstance(secret, str):
        return secret.encode("utf-8")
    raise SignatureConfigurationError(
        f"Webhook secret must be str or bytes, got {type(secret).__name__}"
    )


def compute_hmac_sha256(secret: str | bytes, message: bytes) -> bytes:
    """Return the 32-byte HMAC-SHA256 digest of ``message`` under ``secret``."""
    key = _key_bytes(secret)
    try:
        return hmac.new(key, message, hashlib.sha256).digest()
    except (TypeError, ValueError) as exc:
        raise SignatureConfigurationError("Unable to compute HMAC-SHA256 digest") from exc


def compute_signature(secret: str | bytes, message: bytes) -> str:
    """Compute the SHA-256 hex digest for a raw request body."""
    return bytes_to_hex(compute_hmac_sha256(secret, message))
