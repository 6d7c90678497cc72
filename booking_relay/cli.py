"""Click CLI for running and operating the booking relay."""

from __future__ import annotations

import asyncio
import json
import logging
import os

import click

from booking_relay.completion.gemini import GeminiClient
from booking_relay.config import RelayConfig
from booking_relay.errors import ConfigurationError, DeliveryError, UpstreamError
from booking_relay.webhook.telegram import TelegramRelay


def _load_config() -> RelayConfig:
    try:
        return RelayConfig.from_env()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option(
    "--log-level",
    default=lambda: os.environ.get("LOG_LEVEL", "INFO"),
    show_default="LOG_LEVEL or INFO",
    help="Python logging level.",
)
def cli(log_level: str) -> None:
    """Telegram to Gemini booking relay."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs full request URLs at INFO; they embed the API key and bot token
    logging.getLogger("httpx").setLevel(logging.WARNING)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Bind address.")
@click.option("--port", default=8000, type=int, help="Bind port.")
def serve(host: str, port: int) -> None:
    """Serve the webhook with uvicorn."""
    import uvicorn

    _load_config()
    uvicorn.run(
        "booking_relay.server.app:create_app_from_env",
        factory=True,
        host=host,
        port=port,
    )


@cli.command("check-config")
def check_config() -> None:
    """Validate environment configuration and print a redacted summary."""
    config = _load_config()
    click.echo(json.dumps(config.redacted(), indent=2))


@cli.command("set-webhook")
@click.argument("url")
@click.option("--drop-pending", is_flag=True, help="Discard updates queued at Telegram.")
def set_webhook(url: str, drop_pending: bool) -> None:
    """Register URL as the bot's webhook, including the secret token."""
    config = _load_config()
    telegram = TelegramRelay.from_config(config)
    try:
        asyncio.run(telegram.set_webhook(url, drop_pending_updates=drop_pending))
    except DeliveryError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Webhook set to {url}")


@cli.command()
@click.argument("text")
def ask(text: str) -> None:
    """Run TEXT through Gemini once and print the parsed JSON answer."""
    config = _load_config()
    client = GeminiClient.from_config(config)
    try:
        result = asyncio.run(client.complete(text, config.booking_link))
    except UpstreamError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(result.root, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
