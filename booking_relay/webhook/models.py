"""Data models for the webhook handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class InboundRequest:
    """Transport-neutral view of one webhook delivery."""

    method: str
    headers: dict[str, str] = field(default_factory=dict)  # lower-cased names
    body: bytes = b""


@dataclass
class WebhookMessage:
    """Usable text message extracted from a Telegram update."""

    chat_id: int | str
    text: str


@dataclass
class WebhookResponse:
    """Handler outcome to render back to the calling platform."""

    body: dict[str, Any]
    status_code: int = 200
