"""Shared Pydantic data models for the booking relay."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, RootModel


class CompletionResult(RootModel[Any]):
    """Parsed JSON answer from the completion service.

    No schema is enforced; ``reply_text`` is the only field the relay reads.
    """

    def reply_text(self) -> str | None:
        """Trimmed ``reply_text`` when it is a non-blank string, else None."""
        if not isinstance(self.root, dict):
            return None
        value = self.root.get("reply_text")
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


class WebhookAck(BaseModel):
    """Body returned to Telegram for every accepted delivery."""

    model_config = ConfigDict(frozen=True)

    ok: bool = True
    ignored: bool | None = None

    def to_body(self) -> dict[str, bool]:
        return self.model_dump(exclude_none=True)
