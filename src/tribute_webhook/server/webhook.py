"""Request handler that authenticates and dispatches one Tribute webhook."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from tribute_webhook.core.config import DEFAULT_MAX_BODY_BYTES
from tribute_webhook.errors import SignatureConfigurationError
from tribute_webhook.events.handlers import EventDispatcher, HandlerResult
from tribute_webhook.events.schemas import TributeEvent
from tribute_webhook.security.verifier import verify_signature

logger = logging.getLogger(__name__)

SIGNATURE_HEADERS = ("trbt-signature", "x-trbt-signature")

EventCallback = Callable[[str, dict[str, Any], HandlerResult], Awaitable[None]]
WebhookHandler = Callable[[Request], Awaitable[JSONResponse]]


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def get_signature_header(request: Request) -> str | None:
    """Return the first signature header present; lookups are case-insensitive."""
    for name in SIGNATURE_HEADERS:
        value = request.headers.get(name)
        if value is not None:
            return value
    return None


def create_webhook_handler(
    secret: str,
    endpoint: str | None = None,
    dispatcher: EventDispatcher | None = None,
    on_event: EventCallback | None = None,
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
) -> WebhookHandler:
    """Build the handler for one webhook endpoint.

    Args:
        secret: Shared key used to verify this endpoint's signatures.
        endpoint: Normalized endpoint path, used in logs and notifications.
        dispatcher: Event-name dispatch table; the built-in one by default.
        on_event: Awaited with the parsed JSON object after a verified event
            was dispatched.
        max_body_bytes: Largest accepted request body.
    """
    event_dispatcher = dispatcher or EventDispatcher()
    log_prefix = f"[TributeWebhook:{endpoint}]" if endpoint else "[TributeWebhook]"

    async def handle_webhook(request: Request) -> JSONResponse:
        try:
            method = request.method
            path = request.url.path
            logger.info("%s received %s %s", log_prefix, method, path)

            if method != "POST":
                logger.warning("%s rejecting unsupported method %s %s", log_prefix, method, path)
                return _error(405, "method not allowed", method=method)

            if not secret:
                logger.error("%s webhook secret not configured", log_prefix)
                return _error(500, "server misconfigured")

            raw = await request.body()
            if len(raw) > max_body_bytes:
                logger.warning("%s body too large: %d bytes", log_prefix, len(raw))
                return _error(413, "body too large")
            if not raw:
                logger.warning("%s empty request body", log_prefix)
                return _error(400, "empty body")

            signature = get_signature_header(request)
            if signature is None:
                logger.warning("%s missing signature header", log_prefix)
                return _error(401, "invalid signature")

            try:
                is_valid = verify_signature(signature, secret, raw)
            except SignatureConfigurationError:
                logger.exception("%s signature verification misconfigured", log_prefix)
                return _error(500, "server misconfigured")
            if not is_valid:
                logger.warning("%s invalid signature", log_prefix)
                return _error(401, "invalid signature")

            try:
                document = json.loads(raw)
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                logger.warning("%s invalid tribute payload: %s", log_prefix, exc)
                return _error(400, "invalid json")

            if not isinstance(document, dict) or not isinstance(document.get("name"), str):
                logger.warning("%s invalid event", log_prefix)
                return _error(400, "invalid event")
            try:
                event = TributeEvent.model_validate(document)
            except ValidationError:
                logger.warning("%s invalid event", log_prefix)
                return _error(400, "invalid event")

            result = event_dispatcher.dispatch(event)
            logger.info("%s processed %s -> %s", log_prefix, event.name, result.status)

            if on_event is not None:
                try:
                    await on_event(endpoint or path, document, result)
                except Exception:  # noqa: BLE001
                    logger.exception("%s event notification failed", log_prefix)

            return JSONResponse(result.body, status_code=result.status)
        except Exception:  # noqa: BLE001
            logger.exception("%s unhandled error", log_prefix)
            return _error(500, "internal error")

    return handle_webhook
