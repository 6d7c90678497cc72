"""Tests for the relay CLI."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from booking_relay.cli import cli
from booking_relay.errors import DeliveryError, UpstreamError
from booking_relay.models import CompletionResult

_ENV = {
    "TELEGRAM_BOT_TOKEN": "123:ABC",
    "JIM_API_KEY": "gemini-key",
    "AI_SYSTEM_PROMPT": "Book at {{BOOKING_LINK}}",
    "TELEGRAM_WEBHOOK_SECRET": "s3cret",
}


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in _ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("BOOKING_LINK", raising=False)


def test_check_config_prints_redacted_summary(env: None) -> None:
    result = CliRunner().invoke(cli, ["check-config"])
    assert result.exit_code == 0
    summary = json.loads(result.output)
    assert summary["telegram_bot_token"] == "***"
    assert summary["webhook_secret"] == "***"
    assert "123:ABC" not in result.output


def test_check_config_fails_on_missing_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    result = CliRunner().invoke(cli, ["check-config"])
    assert result.exit_code == 1
    assert "TELEGRAM_BOT_TOKEN" in result.output


def test_set_webhook_calls_telegram(env: None) -> None:
    with patch(
        "booking_relay.cli.TelegramRelay.set_webhook", new_callable=AsyncMock,
    ) as mock_set:
        result = CliRunner().invoke(
            cli, ["set-webhook", "https://relay.example.com/api/telegram/webhook", "--drop-pending"],
        )
    assert result.exit_code == 0
    mock_set.assert_awaited_once_with(
        "https://relay.example.com/api/telegram/webhook", drop_pending_updates=True,
    )
    assert "Webhook set" in result.output


def test_set_webhook_reports_delivery_error(env: None) -> None:
    with patch(
        "booking_relay.cli.TelegramRelay.set_webhook",
        new_callable=AsyncMock,
        side_effect=DeliveryError("Telegram setWebhook failed", 401, "Unauthorized"),
    ):
        result = CliRunner().invoke(cli, ["set-webhook", "https://relay.example.com/hook"])
    assert result.exit_code == 1
    assert "setWebhook failed" in result.output


def test_ask_prints_parsed_answer(env: None) -> None:
    with patch(
        "booking_relay.cli.GeminiClient.complete",
        new_callable=AsyncMock,
        return_value=CompletionResult({"reply_text": "Hi!"}),
    ) as mock_complete:
        result = CliRunner().invoke(cli, ["ask", "hello"])
    assert result.exit_code == 0
    assert json.loads(result.output) == {"reply_text": "Hi!"}
    mock_complete.assert_awaited_once_with("hello", "https://calendly.com/your-link")


def test_ask_reports_upstream_error(env: None) -> None:
    with patch(
        "booking_relay.cli.GeminiClient.complete",
        new_callable=AsyncMock,
        side_effect=UpstreamError("Gemini returned malformed JSON"),
    ):
        result = CliRunner().invoke(cli, ["ask", "hello"])
    assert result.exit_code == 1
    assert "malformed JSON" in result.output


def test_serve_runs_uvicorn_factory(env: None) -> None:
    with patch("uvicorn.run") as mock_run:
        result = CliRunner().invoke(cli, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    args, kwargs = mock_run.call_args
    assert args[0] == "booking_relay.server.app:create_app_from_env"
    assert kwargs["factory"] is True
    assert kwargs["port"] == 9000
