"""
Error types for LLM gateway operations.

This module provides the errors raised while talking to the inference
gateway:
- Upstream failures with the gateway's own error message
- Rate limit and credit exhaustion detection
- Missing response bodies on streaming calls
"""

from __future__ import annotations

DEFAULT_UPSTREAM_MESSAGE = "Request failed"


class LLMError(Exception):
    """Base LLM error with rich context."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        model: str = "unknown",
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.response_data = response_data or {}


class UpstreamError(LLMError):
    """Non-success response from the gateway, raised before any decoding."""


class RateLimitError(UpstreamError):
    """Rate limit error with retry information."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class CreditsExhaustedError(UpstreamError):
    """The gateway account has run out of credits (HTTP 402)."""
    pass


class NoBodyError(LLMError):
    """Successful response that carries no readable stream."""

    def __init__(self, message: str = "No response body", **kwargs):
        super().__init__(message, **kwargs)


class StreamingError(LLMError):
    """Transport failure while a stream is being read."""
    pass


class ProviderError(LLMError):
    """Provider-specific configuration or setup errors."""
    pass
