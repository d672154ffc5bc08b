"""
Chat Service for the Gastronom.IA recipe chat.

This module handles the client side of a chat about one recipe:
- In-memory conversation history, capped before each request
- Streaming the assistant reply through the chef-chat endpoint
- Detecting and applying ingredient substitutions from the reply

Saving the updated ingredients is left to the caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

import httpx
import structlog

from gastronomia.llm.models import ChatMessage
from gastronomia.llm.streaming.chat import stream_chat
from gastronomia.recipes.models import RecipeContext, RecipeIngredient
from gastronomia.recipes.substitution import (
    Substitution,
    apply_substitution,
    parse_substitution,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ChatTurn:
    """Outcome of one user message."""
    reply: str
    substitution: Substitution | None = None
    ingredients_changed: bool = False


class ChatSession:
    """
    Conversation with the virtual chef about a single recipe.

    Sends are serialized: one reply streams at a time.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        recipe: RecipeContext,
        ingredients: list[RecipeIngredient],
        *,
        headers: dict[str, str] | None = None,
        max_history_messages: int = 20,
    ) -> None:
        if max_history_messages < 1:
            raise ValueError("max_history_messages must be at least 1")

        self.client = client
        self.url = url
        self.recipe = recipe
        self.ingredients = list(ingredients)
        self.headers = headers
        self.max_history_messages = max_history_messages
        self.messages: list[ChatMessage] = []
        self._lock = asyncio.Lock()

    def history_payload(self) -> list[dict[str, str]]:
        """Most recent messages, in order, as sent to the endpoint."""
        recent = self.messages[-self.max_history_messages:]
        return [message.to_dict() for message in recent]

    async def send(
        self,
        text: str,
        on_delta: Callable[[str], None] | None = None,
    ) -> ChatTurn:
        """
        Send a user message and stream the assistant reply.

        Args:
            text: The user's message.
            on_delta: Optional callback receiving each reply fragment.

        Returns:
            The completed turn, including any substitution applied to
            ``self.ingredients``.

        Raises:
            ValueError: If the message is blank.
            UpstreamError: If the chat endpoint rejects the request.
            NoBodyError: If the chat endpoint returns no stream.
        """
        text = text.strip()
        if not text:
            raise ValueError("Message is empty")

        async with self._lock:
            self.messages.append(ChatMessage(role="user", content=text))
            parts: list[str] = []

            def deliver(fragment: str) -> None:
                parts.append(fragment)
                if on_delta is not None:
                    on_delta(fragment)

            await stream_chat(
                self.client,
                self.url,
                self.history_payload(),
                deliver,
                lambda: None,
                recipe_context=self.recipe.model_dump(),
                headers=self.headers,
            )

            reply = "".join(parts)
            if reply:
                self.messages.append(ChatMessage(role="assistant", content=reply))

            return self._finish_turn(reply)

    def _finish_turn(self, reply: str) -> ChatTurn:
        substitution = parse_substitution(reply)
        if substitution is None:
            return ChatTurn(reply=reply)

        self.ingredients, changed = apply_substitution(self.ingredients, substitution)
        if changed:
            logger.info(
                "Ingredient substituted",
                old_name=substitution.old_name,
                new_name=substitution.new_name,
            )
        return ChatTurn(
            reply=reply, substitution=substitution, ingredients_changed=changed
        )

    def clear(self) -> None:
        """Forget the conversation."""
        self.messages.clear()
