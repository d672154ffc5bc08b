"""
LLM gateway access for the Gastronom.IA backend.

Submodules:
- exceptions: error hierarchy for upstream failures
- models: provider types and chat messages
- client: HTTP client for OpenAI-compatible gateways
- streaming: event stream decoding and chat streaming
"""

from .exceptions import (
    CreditsExhaustedError,
    LLMError,
    NoBodyError,
    ProviderError,
    RateLimitError,
    StreamingError,
    UpstreamError,
)
from .models import ChatMessage, ProviderType

__all__ = [
    "ChatMessage",
    "CreditsExhaustedError",
    "LLMError",
    "NoBodyError",
    "ProviderError",
    "ProviderType",
    "RateLimitError",
    "StreamingError",
    "UpstreamError",
]
