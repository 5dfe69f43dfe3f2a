"""Timing-safe byte comparison."""

from __future__ import annotations


def constant_time_equals(a: bytes, b: bytes) -> bool:
    """Compare two byte strings without an early exit on the first mismatch.

    Only the length check short-circuits; digest lengths are public.
    """
    if len(a) != len(b):
        return False
    diff = 0
    for left, right in zip(a, b):
        diff |= left ^ right
    return diff == 0
