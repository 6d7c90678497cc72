"""Webhook relay pipeline.

Pipeline stages:
1. Method check (POST only)
2. Secret token check, before the body is read
3. Extract chat id and text, ignoring updates without usable text
4. Ask Gemini for a structured reply
5. Send the reply text back to the originating chat

Failures after stage 3 are logged and answered with 200 so Telegram does
not redeliver the same update while the operator fixes the cause.
"""

from __future__ import annotations

import json
import logging

from booking_relay.completion.gemini import GeminiClient
from booking_relay.config import RelayConfig
from booking_relay.errors import ValidationError
from booking_relay.models import CompletionResult, WebhookAck
from booking_relay.webhook.models import InboundRequest, WebhookMessage, WebhookResponse
from booking_relay.webhook.telegram import TelegramRelay

logger = logging.getLogger(__name__)

_WRITE_METHOD = "POST"


class WebhookRelayPipeline:
    """Turns one Telegram delivery into at most one Gemini call and one reply."""

    def __init__(
        self,
        telegram: TelegramRelay,
        completion: GeminiClient,
        booking_link: str,
        fallback_reply_text: str,
    ) -> None:
        self._telegram = telegram
        self._completion = completion
        self._booking_link = booking_link
        self._fallback_reply_text = fallback_reply_text

    @classmethod
    def from_config(cls, config: RelayConfig) -> WebhookRelayPipeline:
        return cls(
            telegram=TelegramRelay.from_config(config),
            completion=GeminiClient.from_config(config),
            booking_link=config.booking_link,
            fallback_reply_text=config.fallback_reply_text,
        )

    async def handle(self, request: InboundRequest) -> WebhookResponse:
        """Run the full pipeline for one delivery and return the response."""
        try:
            self._check_request(request)
        except ValidationError as exc:
            logger.warning("Rejected webhook request: %s", exc)
            return WebhookResponse(
                body={"error": str(exc)}, status_code=exc.status_code,
            )

        message = self._parse_message(request.body)
        if message is None:
            logger.debug("Ignoring update without chat id or text")
            return WebhookResponse(body=WebhookAck(ignored=True).to_body())

        try:
            await self.relay(message)
        except Exception:
            logger.exception("Webhook error for chat %s", message.chat_id)

        return WebhookResponse(body=WebhookAck().to_body())

    async def relay(self, message: WebhookMessage) -> str:
        """Ask Gemini about ``message`` and send the reply. Returns the reply text.

        UpstreamError and DeliveryError propagate to the caller.
        """
        result = await self._completion.complete(message.text, self._booking_link)
        reply_text = self.choose_reply(result)
        await self._telegram.send_response(message.chat_id, reply_text)
        logger.info("Relayed reply to chat %s", message.chat_id)
        return reply_text

    def choose_reply(self, result: CompletionResult) -> str:
        return result.reply_text() or self._fallback_reply_text

    def _check_request(self, request: InboundRequest) -> None:
        if request.method.upper() != _WRITE_METHOD:
            raise ValidationError("Method Not Allowed", status_code=405)
        if not self._telegram.verify_webhook(request.headers):
            raise ValidationError("Unauthorized", status_code=401)

    def _parse_message(self, body: bytes) -> WebhookMessage | None:
        try:
            update = json.loads(body)
        except (ValueError, RecursionError):
            logger.warning("Webhook body is not usable JSON")
            return None
        return self._telegram.extract_message(update)
