"""Signature codec, comparison, signing and verification."""

from tribute_webhook.security.codec import (
    base64_to_bytes,
    bytes_to_base64,
    bytes_to_hex,
    hex_to_bytes,
)
from tribute_webhook.security.compare import constant_time_equals
from tribute_webhook.security.signing import compute_hmac_sha256, compute_signature
from tribute_webhook.security.verifier import clean_signature_header, verify_signature

__all__ = [
    "base64_to_bytes",
    "bytes_to_base64",
    "bytes_to_hex",
    "hex_to_bytes",
    "constant_time_equals",
    "compute_hmac_sha256",
    "compute_signature",
    "clean_signature_header",
    "verify_signature",
]
