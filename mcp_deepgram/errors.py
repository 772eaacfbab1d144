from __future__ import annotations


class DeepgramError(Exception):
    """Base exception for Deepgram client failures."""


class TransportError(DeepgramError):
    """Raised when no response was received (DNS, timeout, connection reset)."""


class ProviderError(DeepgramError):
    """Raised when Deepgram answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"Deepgram API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class NoProjectError(DeepgramError):
    """Raised when the API key has no associated project."""


class MalformedResponseError(DeepgramError):
    """Raised when Deepgram answers 2xx with a body that cannot be read."""
