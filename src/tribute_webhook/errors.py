"""Exception types raised by the webhook receiver."""

from __future__ import annotations


class TributeWebhookError(Exception):
    """Base class for receiver errors."""


class SignatureDecodeError(TributeWebhookError, ValueError):
    """Raised when a signature string is not valid hex or base64."""


class SignatureConfigurationError(TributeWebhookError):
    """Raised when the HMAC primitive cannot use the configured secret.

    This is an operational fault, never the result of attacker-supplied data.
    """
