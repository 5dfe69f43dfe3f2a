"""Tribute event models and dispatch."""

from tribute_webhook.events.handlers import (
    EventDispatcher,
    HandlerResult,
    handle_tribute_event,
)
from tribute_webhook.events.schemas import TributeEvent

__all__ = ["EventDispatcher", "HandlerResult", "TributeEvent", "handle_tribute_event"]
