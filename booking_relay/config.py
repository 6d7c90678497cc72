"""Relay configuration loaded once from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from booking_relay.errors import ConfigurationError

DEFAULT_BOOKING_LINK = "https://calendly.com/your-link"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.6
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_FALLBACK_REPLY = (
    "Quick question — what’s your website or IG link so I can take a look?"
)

# (field, env names in lookup order)
_REQUIRED: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("telegram_bot_token", ("TELEGRAM_BOT_TOKEN",)),
    ("gemini_api_key", ("JIM_API_KEY", "GEMINI_API_KEY")),
    ("system_prompt", ("AI_SYSTEM_PROMPT",)),
)


class RelayConfig(BaseModel):
    """Read-only settings shared by every webhook invocation."""

    model_config = ConfigDict(frozen=True)

    telegram_bot_token: str = Field(min_length=1)
    gemini_api_key: str = Field(min_length=1)
    system_prompt: str = Field(min_length=1)
    booking_link: str = DEFAULT_BOOKING_LINK
    gemini_model: str = DEFAULT_GEMINI_MODEL
    webhook_secret: str | None = None
    fallback_reply_text: str = Field(default=DEFAULT_FALLBACK_REPLY, min_length=1)
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    http_timeout: float | None = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RelayConfig:
        """Build the config from ``environ`` (defaults to ``os.environ``).

        Raises ConfigurationError listing every missing mandatory variable.
        """
        env = os.environ if environ is None else environ

        values: dict[str, object] = {}
        missing: list[str] = []
        for field_name, names in _REQUIRED:
            value = _first_set(env, names)
            if value is None:
                missing.append(names[0])
            else:
                values[field_name] = value
        if missing:
            raise ConfigurationError(
                "Missing required environment variable(s): " + ", ".join(missing)
            )

        values["booking_link"] = _first_set(env, ("BOOKING_LINK",)) or DEFAULT_BOOKING_LINK
        values["gemini_model"] = _first_set(env, ("GEMINI_MODEL",)) or DEFAULT_GEMINI_MODEL
        values["webhook_secret"] = _first_set(env, ("TELEGRAM_WEBHOOK_SECRET",))
        values["fallback_reply_text"] = (
            _first_set(env, ("FALLBACK_REPLY_TEXT",)) or DEFAULT_FALLBACK_REPLY
        )
        values["temperature"] = _parse_float(
            env, "GEMINI_TEMPERATURE", DEFAULT_TEMPERATURE,
        )
        values["http_timeout"] = _parse_timeout(env)

        try:
            return cls.model_validate(values)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    def redacted(self) -> dict[str, object]:
        """Summary safe to print: credentials are masked."""
        data = self.model_dump()
        for key in ("telegram_bot_token", "gemini_api_key", "webhook_secret"):
            if data.get(key):
                data[key] = "***"
        data["system_prompt"] = f"<{len(self.system_prompt)} chars>"
        return data


def _first_set(env: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = env.get(name)
        if value:
            return value
    return None


def _parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def _parse_timeout(env: Mapping[str, str]) -> float | None:
    if env.get("HTTP_TIMEOUT_SECONDS", "").strip().lower() == "none":
        return None
    timeout = _parse_float(env, "HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT)
    if timeout < 0:
        raise ConfigurationError("HTTP_TIMEOUT_SECONDS must not be negative")
    # 0 disables the per-call deadline
    return timeout or None
