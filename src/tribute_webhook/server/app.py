"""FastAPI application receiving Tribute webhooks."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from tribute_webhook import __version__
from tribute_webhook.core.config import (
    WebhookSettings,
    ensure_config,
    load_webhook_settings,
    normalize_webhook_path,
)
from tribute_webhook.events.handlers import EventDispatcher, HandlerResult
from tribute_webhook.server.subscriptions import (
    SubscriptionManager,
    SubscriptionMessage,
    parse_subscription_request,
)
from tribute_webhook.server.webhook import WebhookHandler, create_webhook_handler

logger = logging.getLogger(__name__)

_WEBHOOK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
HEALTH_PATH = "/health"


def _iso_utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class WebhookRouter:
    """Resolve a request path to its endpoint handler, building handlers lazily.

    A cached handler is rebuilt when the secret for its path changes.
    """

    def __init__(
        self,
        settings: WebhookSettings,
        dispatcher: EventDispatcher,
        subscriptions: SubscriptionManager,
    ) -> None:
        self._settings = settings
        self._dispatcher = dispatcher
        self._subscriptions = subscriptions
        self._handlers: dict[str, tuple[str, WebhookHandler]] = {}

    async def _notify_subscribers(
        self, endpoint: str, document: dict[str, Any], result: HandlerResult
    ) -> None:
        await self._subscriptions.publish_event(
            endpoint,
            document,
            metadata={"status": result.status, "received_at": _iso_utc_now()},
        )

    def get_handler(self, pathname: str) -> WebhookHandler | None:
        normalized = normalize_webhook_path(pathname)
        secret = self._settings.get_webhook_secret(normalized)
        if secret is None:
            return None

        cached = self._handlers.get(normalized)
        if cached is not None and cached[0] == secret:
            return cached[1]

        handler = create_webhook_handler(
            secret=secret,
            endpoint=normalized,
            dispatcher=self._dispatcher,
            on_event=self._notify_subscribers,
            max_body_bytes=self._settings.max_body_bytes,
        )
        self._handlers[normalized] = (secret, handler)
        return handler


def create_app(
    settings: WebhookSettings | None = None,
    dispatcher: EventDispatcher | None = None,
) -> FastAPI:
    """Create and configure the webhook receiver FastAPI app."""
    settings = settings or load_webhook_settings()
    ensure_config(settings)

    subscriptions = SubscriptionManager()
    router = WebhookRouter(settings, dispatcher or EventDispatcher(), subscriptions)

    # Every path belongs to the webhook namespace, so the generated docs are off.
    app = FastAPI(
        title="Tribute Webhook Receiver",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.subscriptions = subscriptions
    app.state.webhook_router = router

    configured_paths = settings.known_webhook_paths()
    if configured_paths:
        logger.info("Webhook endpoints available: %s", ", ".join(configured_paths))

    @app.websocket("/subscriptions")
    async def subscriptions_socket(websocket: WebSocket, endpoint: str | None = None) -> None:
        """Push verified events for the endpoints a client subscribes to."""
        await websocket.accept()

        async def send(message: SubscriptionMessage) -> None:
            await websocket.send_text(message.to_json())

        async def subscribe(path: str) -> None:
            if settings.get_webhook_secret(path) is None:
                await send(SubscriptionMessage(type="error", message="unknown endpoint"))
                return
            normalized = subscriptions.subscribe(path, websocket)
            await send(SubscriptionMessage(type="subscribed", endpoint=normalized))

        try:
            if endpoint:
                await subscribe(endpoint)
            while True:
                request = parse_subscription_request(await websocket.receive_text())
                if isinstance(request, str):
                    await send(SubscriptionMessage(type="error", message=request))
                elif request.action == "subscribe":
                    await subscribe(request.endpoint)
                else:
                    normalized = subscriptions.unsubscribe(request.endpoint, websocket)
                    await send(SubscriptionMessage(type="unsubscribed", endpoint=normalized))
        except WebSocketDisconnect:
            logger.debug("Subscriber disconnected")
        finally:
            subscriptions.clear(websocket)

    @app.api_route("/{full_path:path}", methods=_WEBHOOK_METHODS)
    async def webhook(request: Request, full_path: str) -> JSONResponse:
        pathname = normalize_webhook_path(request.url.path)
        if pathname == HEALTH_PATH:
            return JSONResponse({"ok": True})
        handler = router.get_handler(pathname)
        if handler is None:
            logger.warning("Unconfigured webhook endpoint requested: %s", pathname)
            return JSONResponse({"error": "not found"}, status_code=404)
        return await handler(request)

    return app
