"""Telegram webhook relay that answers chat messages through Gemini."""

__version__ = "0.1.0"
