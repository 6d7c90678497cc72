"""Gemini generateContent client in JSON output mode."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from booking_relay.config import DEFAULT_GEMINI_MODEL, DEFAULT_TEMPERATURE, RelayConfig
from booking_relay.errors import UpstreamError
from booking_relay.models import CompletionResult

logger = logging.getLogger(__name__)

GEMINI_API = "https://generativelanguage.googleapis.com/v1beta"
BOOKING_LINK_PLACEHOLDER = "{{BOOKING_LINK}}"


def resolve_system_prompt(template: str, booking_link: str) -> str:
    """Replace every booking link placeholder in ``template``."""
    return template.replace(BOOKING_LINK_PLACEHOLDER, booking_link)


class GeminiClient:
    """Asks Gemini for a structured JSON reply to a single user message."""

    def __init__(
        self,
        api_key: str,
        system_prompt: str,
        model: str = DEFAULT_GEMINI_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float | None = None,
    ) -> None:
        self._api_key = api_key
        self._system_prompt = system_prompt
        self._model = model
        self._temperature = temperature
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: RelayConfig) -> GeminiClient:
        return cls(
            api_key=config.gemini_api_key,
            system_prompt=config.system_prompt,
            model=config.gemini_model,
            temperature=config.temperature,
            timeout=config.http_timeout,
        )

    def build_request(self, user_text: str, booking_link: str) -> dict[str, Any]:
        """Translate a user message into a generateContent request body."""
        return {
            "systemInstruction": {
                "parts": [
                    {"text": resolve_system_prompt(self._system_prompt, booking_link)},
                ],
            },
            "contents": [
                {"role": "user", "parts": [{"text": user_text}]},
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "temperature": self._temperature,
            },
        }

    async def complete(self, user_text: str, booking_link: str) -> CompletionResult:
        """Run one completion and return the parsed JSON answer.

        Raises UpstreamError when the call fails, returns a non-2xx status,
        carries no text, or carries text that is not valid JSON.
        """
        url = f"{GEMINI_API}/models/{self._model}:generateContent"
        body = self.build_request(user_text, booking_link)

        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.post(
                    url,
                    params={"key": self._api_key},
                    json=body,
                    timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"Gemini API unreachable ({type(exc).__name__})"
            ) from exc

        if not 200 <= resp.status_code < 300:
            raise UpstreamError(
                "Gemini API failed", status_code=resp.status_code, body=resp.text,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError("Gemini API returned a non-JSON envelope") from exc

        raw = _first_part_text(data)
        if not raw:
            raise UpstreamError("Gemini returned no text")

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Invalid JSON from Gemini: %s", raw)
            raise UpstreamError("Gemini returned malformed JSON") from exc

        return CompletionResult(parsed)


def _first_part_text(data: Any) -> str | None:
    """candidates[0].content.parts[0].text, or None at the first missing step."""
    node: Any = data
    for step in ("candidates", 0, "content", "parts", 0, "text"):
        if isinstance(step, int):
            if not isinstance(node, list) or len(node) <= step:
                return None
        elif not isinstance(node, dict):
            return None
        node = node[step] if isinstance(step, int) else node.get(step)
    return node if isinstance(node, str) else None
