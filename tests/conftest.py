"""Shared test fixtures for telegram-booking-relay."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from booking_relay.config import RelayConfig

SYSTEM_PROMPT = (
    "You are a booking assistant. Offer {{BOOKING_LINK}} when asked. "
    "Reply as JSON with reply_text. Link again: {{BOOKING_LINK}}"
)
BOOKING_LINK = "https://cal.example.com/demo"


@pytest.fixture
def relay_config() -> RelayConfig:
    return make_config()


# --- Factory functions for test data ---


def make_config(**kwargs: Any) -> RelayConfig:
    """Factory for RelayConfig with sensible defaults."""
    defaults: dict[str, Any] = {
        "telegram_bot_token": "123:ABC",
        "gemini_api_key": "gemini-key",
        "system_prompt": SYSTEM_PROMPT,
        "booking_link": BOOKING_LINK,
        "fallback_reply_text": "What's your website?",
    }
    defaults.update(kwargs)
    return RelayConfig(**defaults)


def make_telegram_update(
    update_id: int = 1,
    text: str | None = "hello",
    chat_id: Any = 12345,
) -> dict[str, Any]:
    message: dict[str, Any] = {"message_id": 1, "chat": {"id": chat_id}}
    if text is not None:
        message["text"] = text
    return {"update_id": update_id, "message": message}


def make_gemini_body(text: str | None) -> dict[str, Any]:
    """generateContent envelope whose first part carries ``text``."""
    if text is None:
        return {"candidates": []}
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def make_http_response(
    status_code: int = 200,
    json_body: Any = None,
    text: str = "",
) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text or (json.dumps(json_body) if json_body is not None else "")
    if json_body is not None:
        resp.json.return_value = json_body
    else:
        resp.json.side_effect = ValueError("no json")
    return resp


def make_async_client(*responses: MagicMock) -> AsyncMock:
    """AsyncMock usable as ``async with httpx.AsyncClient() as client``."""
    client = AsyncMock()
    if len(responses) == 1:
        client.post.return_value = responses[0]
    else:
        client.post.side_effect = list(responses)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client
