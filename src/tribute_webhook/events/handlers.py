"""Per-event-name handlers for verified Tribute events."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from tribute_webhook.events.schemas import PaymentCompletedPayload, TributeEvent

logger = logging.getLogger(__name__)

PAYMENT_COMPLETED_EVENTS = frozenset(
    {"payment.completed", "payment_completed", "payment_succeeded"}
)


@dataclass(frozen=True)
class HandlerResult:
    """HTTP status and JSON body produced by an event handler."""

    status: int
    body: Any


EventHandler = Callable[[TributeEvent], HandlerResult]


def extract_payment_id(payload: Any) -> str | None:
    """Return ``payment_id`` or ``id`` from a payment payload when non-empty."""
    if not isinstance(payload, dict):
        return None
    parsed = PaymentCompletedPayload.model_validate(payload)
    for candidate in (parsed.payment_id, parsed.id):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def handle_payment_completed(event: TributeEvent) -> HandlerResult:
    payment_id = extract_payment_id(event.payload)
    if payment_id:
        logger.info("Tribute payment completed: %s", payment_id)
    else:
        logger.warning("Payment completed event missing payment_id: %s", event.payload)

    return HandlerResult(
        status=200,
        body={"ok": True, "event": event.name, "paymentId": payment_id},
    )


def handle_new_digital_product(event: TributeEvent) -> HandlerResult:
    logger.info("New digital product payload: %s", event.payload)
    return HandlerResult(status=200, body={"ok": True})


def handle_unknown_event(event: TributeEvent) -> HandlerResult:
    logger.info("Unhandled tribute event %s", event.name)
    return HandlerResult(status=200, body={"ok": True, "received": event.name})


def default_handlers() -> dict[str, EventHandler]:
    """Return the built-in event-name dispatch table."""
    handlers: dict[str, EventHandler] = {
        name: handle_payment_completed for name in PAYMENT_COMPLETED_EVENTS
    }
    handlers["new_digital_product"] = handle_new_digital_product
    return handlers


class EventDispatcher:
    """Route an event to the handler registered for its name."""

    def __init__(
        self,
        handlers: Mapping[str, EventHandler] | None = None,
        fallback: EventHandler = handle_unknown_event,
    ) -> None:
        self._handlers = dict(default_handlers() if handlers is None else handlers)
        self._fallback = fallback

    def dispatch(self, event: TributeEvent) -> HandlerResult:
        handler = self._handlers.get(event.name, self._fallback)
        return handler(event)

    @property
    def event_names(self) -> list[str]:
        return sorted(self._handlers)


_default_dispatcher = EventDispatcher()


def handle_tribute_event(event: TributeEvent) -> HandlerResult:
    """Dispatch ``event`` through the built-in handler table."""
    return _default_dispatcher.dispatch(event)
