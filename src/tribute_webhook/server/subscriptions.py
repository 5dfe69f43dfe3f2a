"""Live fan-out of verified webhook events to WebSocket subscribers."""

from __future__ import annotations

import json
import logging
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field

from tribute_webhook.core.config import normalize_webhook_path

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    """Anything that can receive a text frame, e.g. ``fastapi.WebSocket``."""

    async def send_text(self, data: str) -> None: ...


class SubscriptionMessage(BaseModel):
    """Frame sent from the server to a subscriber."""

    type: Literal["subscribed", "unsubscribed", "event", "error"]
    endpoint: str | None = None
    event: Any = None
    metadata: dict[str, Any] | None = None
    message: str | None = None

    def to_json(self) -> str:
        # Only unset frame fields are dropped; nulls inside the event are kept.
        data = self.model_dump(mode="json")
        return json.dumps({key: value for key, value in data.items() if value is not None})


class SubscriptionRequest(BaseModel):
    """Frame sent from a subscriber to the server."""

    action: Literal["subscribe", "unsubscribe"]
    endpoint: str = Field(min_length=1)


class SubscriptionManager:
    """Registry of subscribers per normalized webhook endpoint."""

    def __init__(self) -> None:
        self._channels: dict[str, set[Subscriber]] = {}

    def subscribe(self, endpoint: str, socket: Subscriber) -> str:
        normalized = normalize_webhook_path(endpoint)
        self._channels.setdefault(normalized, set()).add(socket)
        logger.debug("Subscriber added to %s", normalized)
        return normalized

    def unsubscribe(self, endpoint: str, socket: Subscriber) -> str:
        normalized = normalize_webhook_path(endpoint)
        sockets = self._channels.get(normalized)
        if sockets is None:
            return normalized
        sockets.discard(socket)
        if not sockets:
            del self._channels[normalized]
        return normalized

    def clear(self, socket: Subscriber) -> None:
        """Remove ``socket`` from every channel."""
        for endpoint in list(self._channels):
            sockets = self._channels[endpoint]
            if socket not in sockets:
                continue
            sockets.discard(socket)
            if not sockets:
                del self._channels[endpoint]

    def subscriber_count(self, endpoint: str) -> int:
        return len(self._channels.get(normalize_webhook_path(endpoint), ()))

    async def broadcast(self, endpoint: str, message: SubscriptionMessage) -> int:
        """Send ``message`` to every subscriber of ``endpoint``.

        A failed delivery is logged and does not stop delivery to the rest.
        Returns the number of subscribers that received the frame.
        """
        normalized = normalize_webhook_path(endpoint)
        sockets = self._channels.get(normalized)
        if not sockets:
            return 0

        serialized = message.to_json()
        delivered = 0
        for socket in list(sockets):
            try:
                await socket.send_text(serialized)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to deliver to subscriber of %s: %s", normalized, exc)
                continue
            delivered += 1
        return delivered

    async def publish_event(
        self,
        endpoint: str,
        event: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Broadcast a verified event envelope to ``endpoint`` subscribers."""
        normalized = normalize_webhook_path(endpoint)
        return await self.broadcast(
            normalized,
            SubscriptionMessage(
                type="event", endpoint=normalized, event=event, metadata=metadata
            ),
        )


def parse_subscription_request(raw: str) -> SubscriptionRequest | str:
    """Parse a client frame, returning an error message when it is unusable."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return "invalid json"
    if not isinstance(data, dict):
        return "invalid message"
    action = data.get("action")
    if action not in {"subscribe", "unsubscribe"}:
        return f"unknown action: {action}"
    endpoint = data.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint.strip():
        return "endpoint is required"
    return SubscriptionRequest(action=action, endpoint=endpoint)
