"""Error taxonomy for the webhook relay."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for relay failures."""


class ConfigurationError(RelayError):
    """Raised when a mandatory environment value is missing or invalid."""


class ValidationError(RelayError):
    """Raised when an inbound request fails the method or secret check."""

    def __init__(self, message: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(message)


class _RemoteCallError(RelayError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message}: {status_code} {body or ''}".rstrip()
        super().__init__(message)


class UpstreamError(_RemoteCallError):
    """Completion service was unreachable or returned an unusable answer."""


class DeliveryError(_RemoteCallError):
    """Messaging platform was unreachable or rejected the reply."""
