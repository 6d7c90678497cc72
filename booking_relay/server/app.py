"""FastAPI application exposing the Telegram webhook."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from booking_relay.config import RelayConfig
from booking_relay.webhook.models import InboundRequest
from booking_relay.webhook.relay import WebhookRelayPipeline

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/telegram/webhook"


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables.

    A missing mandatory variable raises ConfigurationError here, so the
    process never starts serving with a partial configuration.
    """
    return create_app(RelayConfig.from_env())


def create_app(
    config: RelayConfig,
    pipeline: WebhookRelayPipeline | None = None,
) -> FastAPI:
    """Create the relay app around one shared, read-only configuration."""
    app = FastAPI(docs_url=None, redoc_url=None)
    relay = pipeline or WebhookRelayPipeline.from_config(config)

    if not config.webhook_secret:
        logger.warning("TELEGRAM_WEBHOOK_SECRET not set; webhook verification disabled")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.api_route(
        WEBHOOK_PATH,
        methods=["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    )
    async def telegram_webhook(request: Request) -> Response:
        inbound = InboundRequest(
            method=request.method,
            headers={k.lower(): v for k, v in request.headers.items()},
            body=await request.body(),
        )
        result = await relay.handle(inbound)
        return JSONResponse(result.body, status_code=result.status_code)

    return app
