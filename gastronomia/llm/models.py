"""
Core LLM models shared by the gateway client, the chat handler and the
chat session.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel

Role = Literal["system", "user", "assistant"]


class ProviderType(Enum):
    """Supported LLM providers."""
    GATEWAY = "gateway"
    GROQ = "groq"
    OPENAI = "openai"
    OPENROUTER = "openrouter"


class ChatMessage(BaseModel):
    """OpenAI-compatible message structure."""
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}
