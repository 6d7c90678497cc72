"""Telegram Bot API side of the relay.

Verifies the optional webhook secret header, extracts the chat and text
from an update, and delivers replies through ``sendMessage``.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any

import httpx

from booking_relay.config import RelayConfig
from booking_relay.errors import DeliveryError
from booking_relay.webhook.models import WebhookMessage

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"
SECRET_HEADER = "x-telegram-bot-api-secret-token"


class TelegramRelay:
    """Handles Telegram Bot API webhook updates and replies."""

    def __init__(
        self,
        bot_token: str,
        webhook_secret: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._bot_token = bot_token
        self._webhook_secret = webhook_secret
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: RelayConfig) -> TelegramRelay:
        return cls(
            bot_token=config.telegram_bot_token,
            webhook_secret=config.webhook_secret,
            timeout=config.http_timeout,
        )

    @property
    def verification_enabled(self) -> bool:
        return bool(self._webhook_secret)

    def verify_webhook(self, headers: dict[str, str]) -> bool:
        """Check the secret token header against the configured secret.

        Always passes when no secret is configured. Byte-for-byte,
        constant-time comparison via hmac.compare_digest.
        """
        if not self._webhook_secret:
            return True
        received = headers.get(SECRET_HEADER)
        if received is None:
            return False
        # Header values arrive latin-1 decoded; recover the raw bytes
        try:
            raw = received.encode("latin-1")
        except UnicodeEncodeError:
            return False
        return hmac.compare_digest(raw, self._webhook_secret.encode())

    def extract_message(self, update: Any) -> WebhookMessage | None:
        """Return chat id and text from ``update``, or None if either is unusable.

        Every step tolerates missing or mistyped fields, so photos, stickers
        and malformed payloads all come back as None.
        """
        message = _child(update, "message")
        chat_id = _child(_child(message, "chat"), "id")
        text = _child(message, "text")

        if isinstance(chat_id, float) and chat_id.is_integer():
            chat_id = int(chat_id)
        if isinstance(chat_id, bool) or not isinstance(chat_id, (int, str)):
            return None
        if not chat_id or not isinstance(text, str) or not text:
            return None
        return WebhookMessage(chat_id=chat_id, text=text)

    async def send_response(self, chat_id: int | str, text: str) -> None:
        """Send ``text`` to ``chat_id`` with link previews disabled.

        Single attempt; raises DeliveryError on transport failure or non-2xx.
        """
        payload = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        await self._call("sendMessage", payload)

    async def set_webhook(self, url: str, drop_pending_updates: bool = False) -> None:
        """Register ``url`` with Telegram, including the secret token if set."""
        payload: dict[str, Any] = {
            "url": url,
            "allowed_updates": ["message"],
            "drop_pending_updates": drop_pending_updates,
        }
        if self._webhook_secret:
            payload["secret_token"] = self._webhook_secret
        await self._call("setWebhook", payload)

    async def _call(self, method: str, payload: dict[str, Any]) -> None:
        url = f"{TELEGRAM_API}/bot{self._bot_token}/{method}"
        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.post(url, json=payload, timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise DeliveryError(
                f"Telegram {method} unreachable ({type(exc).__name__})"
            ) from exc

        if not 200 <= resp.status_code < 300:
            raise DeliveryError(
                f"Telegram {method} failed",
                status_code=resp.status_code,
                body=resp.text,
            )
        logger.debug("Telegram %s succeeded", method)


def _child(node: Any, key: str) -> Any:
    if isinstance(node, dict):
        return node.get(key)
    return None
