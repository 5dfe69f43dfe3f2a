"""Tests for HMAC signing and signature verification."""

from __future__ import annotations

import base64
import json

import pytest

from tribute_webhook.errors import SignatureConfigurationError
from tribute_webhook.security import (
    bytes_to_base64,
    bytes_to_hex,
    clean_signature_header,
    compute_hmac_sha256,
    compute_signature,
    constant_time_equals,
    verify_signature,
)


def _body(payload: dict[str, object]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        (b"", b"", True),
        (b"abc", b"abc", True),
        (b"abc", b"abd", False),
        (b"abc", b"xbc", False),
        (b"abc", b"ab", False),
        (b"", b"\x00", False),
        (b"\x00" * 32, b"\x00" * 32, True),
    ],
)
def test_constant_time_equals(left: bytes, right: bytes, expected: bool) -> None:
    assert constant_time_equals(left, right) is expected


def test_compute_hmac_sha256_known_vector() -> None:
    # RFC 4231 test case 2
    digest = compute_hmac_sha256("Jefe", b"what do ya want for nothing?")
    assert len(digest) == 32
    assert bytes_to_hex(digest) == (
        "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"
    )


def test_compute_hmac_sha256_accepts_bytes_secret() -> None:
    assert compute_hmac_sha256(b"Jefe", b"x") == compute_hmac_sha256("Jefe", b"x")


def test_compute_signature_is_deterministic() -> None:
    first = compute_signature("test-secret", b"payload")
    second = compute_signature("test-secret", b"payload")
    assert first == second
    assert first == bytes_to_hex(compute_hmac_sha256("test-secret", b"payload"))


def test_compute_hmac_rejects_unusable_secret() -> None:
    with pytest.raises(SignatureConfigurationError):
        compute_hmac_sha256(1234, b"payload")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("abc", "abc"),
        ("sha256=abc", "abc"),
        ("SHA256=abc", "abc"),
        ("  Sha256=abc  ", "abc"),
        ("sha256=", ""),
        ("abc sha256=", "abc sha256="),
    ],
)
def test_clean_signature_header(header: str, expected: str) -> None:
    assert clean_signature_header(header) == expected


def test_verify_accepts_hex_signature() -> None:
    secret = "test-secret"
    payload = _body({"hello": "world"})
    signature_hex = bytes_to_hex(compute_hmac_sha256(secret, payload))

    assert verify_signature(signature_hex, secret, payload) is True
    assert verify_signature(f"sha256={signature_hex}", secret, payload) is True
    assert verify_signature(f"SHA256={signature_hex}", secret, payload) is True


def test_verify_accepts_uppercase_hex_signature() -> None:
    secret = "test-secret"
    payload = _body({"hello": "world"})
    signature_hex = compute_signature(secret, payload).upper()

    assert verify_signature(signature_hex, secret, payload) is True


def test_verify_accepts_base64_signature() -> None:
    secret = "base64-secret"
    payload = _body({"foo": "bar"})
    signature = base64.b64encode(compute_hmac_sha256(secret, payload)).decode("ascii")

    assert verify_signature(signature, secret, payload) is True
    assert verify_signature(f"sha256={signature}", secret, payload) is True


def test_verify_rejects_wrong_secret() -> None:
    payload = b"payload"
    signature_hex = compute_signature("test-secret", payload)

    assert verify_signature(signature_hex, "other-secret", payload) is False


def test_verify_rejects_modified_body() -> None:
    secret = "test-secret"
    signature_hex = compute_signature(secret, b'{"a":1}')

    assert verify_signature(signature_hex, secret, b'{"a": 1}') is False


@pytest.mark.parametrize("secret", ["test-secret", "x", "another"])
@pytest.mark.parametrize("body", [b"", b"payload", b'{"a":1}'])
def test_verify_rejects_missing_header(secret: str, body: bytes) -> None:
    assert verify_signature(None, secret, body) is False


def test_verify_rejects_empty_secret() -> None:
    payload = b"payload"
    signature_hex = compute_signature("", payload)

    assert verify_signature(signature_hex, "", payload) is False


@pytest.mark.parametrize("header", ["", "   ", "sha256=", "SHA256=  "])
def test_verify_rejects_empty_cleaned_header(header: str) -> None:
    assert verify_signature(header, "secret", b"payload") is False


@pytest.mark.parametrize(
    "header",
    ["deadbeef", "abc", "not base64!", "%%%%", "====", "é", "sha256=sha256=00"],
)
def test_verify_treats_malformed_headers_as_mismatch(header: str) -> None:
    assert verify_signature(header, "secret", b"payload") is False


def test_verify_rejects_truncated_signature() -> None:
    secret = "test-secret"
    payload = b"payload"
    signature_hex = compute_signature(secret, payload)

    assert verify_signature(signature_hex[:-2], secret, payload) is False
    assert verify_signature(signature_hex[:32], secret, payload) is False


def test_verify_is_idempotent() -> None:
    secret = "test-secret"
    payload = _body({"hello": "world"})
    good = compute_signature(secret, payload)
    bad = "00" * 32

    assert [verify_signature(good, secret, payload) for _ in range(5)] == [True] * 5
    assert [verify_signature(bad, secret, payload) for _ in range(5)] == [False] * 5


def test_verify_propagates_configuration_errors() -> None:
    with pytest.raises(SignatureConfigurationError):
        verify_signature("deadbeef", 1234, b"payload")  # type: ignore[arg-type]


def test_base64_and_hex_forms_agree() -> None:
    digest = compute_hmac_sha256("k", b"m")
    assert base64.b64decode(bytes_to_base64(digest)) == bytes.fromhex(bytes_to_hex(digest))


def test_verify_accepts_unpadded_base64_signature() -> None:
    secret = "s"
    payload = b"payload"
    digest = compute_hmac_sha256(secret, payload)
    canonical = bytes_to_base64(digest)
    unpadded = canonical.rstrip("=")

    # Only the decoded-bytes comparison can accept this form.
    assert unpadded != canonical
    assert not constant_time_equals(unpadded.encode("utf-8"), canonical.encode("utf-8"))
    assert not constant_time_equals(unpadded.encode("utf-8"), bytes_to_hex(digest).encode("utf-8"))

    assert verify_signature(unpadded, secret, payload) is True
    assert verify_signature(f"sha256={unpadded}", secret, payload) is True
    assert verify_signature(unpadded, "other-secret", payload) is False


def test_verify_rejects_base64_with_foreign_characters() -> None:
    secret = "s"
    payload = b"payload"
    unpadded = bytes_to_base64(compute_hmac_sha256(secret, payload)).rstrip("=")

    assert verify_signature(unpadded + "!", secret, payload) is False
    assert verify_signature(unpadded[:-1] + "=" * 3, secret, payload) is False
