#!/usr/bin/env python3
"""
Tests for the recipe chat session.
"""

import json

import httpx
import pytest

from gastronomia.chat_service import ChatSession
from gastronomia.llm.exceptions import RateLimitError
from gastronomia.recipes.models import RecipeContext, RecipeIngredient

CHAT_URL = "https://chef.test/functions/v1/chef-chat"


def reply_stream(text: str, pieces: int = 3) -> httpx.Response:
    size = max(1, len(text) // pieces)
    fragments = [text[i:i + size] for i in range(0, len(text), size)]
    body = b"".join(
        f"data: {json.dumps({'choices': [{'delta': {'content': f}}]})}\n\n".encode()
        for f in fragments
    ) + b"data: [DONE]\n\n"
    return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body)


def make_session(handler, **kwargs) -> ChatSession:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ChatSession(
        client,
        CHAT_URL,
        RecipeContext(name="Omelete", ingredients="3 ovos\nsal"),
        [RecipeIngredient(name="ovos", quantity="3"), RecipeIngredient(name="sal")],
        **kwargs,
    )


@pytest.mark.asyncio
async def test_send_streams_reply_into_history():
    requests: list[dict] = []

    def handler(request):
        requests.append(json.loads(request.content))
        return reply_stream("Bata bem os ovos antes.")

    session = make_session(handler)
    fragments: list[str] = []
    turn = await session.send("  Alguma dica?  ", on_delta=fragments.append)
    await session.client.aclose()

    assert turn.reply == "Bata bem os ovos antes."
    assert "".join(fragments) == turn.reply
    assert turn.substitution is None
    assert [m.role for m in session.messages] == ["user", "assistant"]
    assert session.messages[0].content == "Alguma dica?"
    assert requests[0]["messages"] == [{"role": "user", "content": "Alguma dica?"}]
    assert requests[0]["recipe_context"]["name"] == "Omelete"


@pytest.mark.asyncio
async def test_substitution_updates_ingredients():
    def handler(request):
        return reply_stream("Use tofu! <<<SUBSTITUIR: ovos >>> Tofu>>>")

    session = make_session(handler)
    turn = await session.send("Quero vegano")
    await session.client.aclose()

    assert turn.ingredients_changed
    assert turn.substitution.new_name == "Tofu"
    assert [i.name for i in session.ingredients] == ["Tofu", "sal"]


@pytest.mark.asyncio
async def test_history_is_capped():
    requests: list[dict] = []

    def handler(request):
        requests.append(json.loads(request.content))
        return reply_stream("ok", pieces=1)

    session = make_session(handler, max_history_messages=3)
    for text in ("um", "dois", "três"):
        await session.send(text)
    await session.client.aclose()

    sent = requests[-1]["messages"]
    assert len(sent) == 3
    assert sent[-1] == {"role": "user", "content": "três"}
    assert len(session.messages) == 6


@pytest.mark.asyncio
async def test_upstream_error_keeps_user_message_only():
    def handler(request):
        return httpx.Response(429, json={"error": "Too many requests"})

    session = make_session(handler)
    with pytest.raises(RateLimitError, match="Too many requests"):
        await session.send("Oi")
    await session.client.aclose()

    assert [m.role for m in session.messages] == ["user"]


@pytest.mark.asyncio
async def test_blank_message_rejected():
    session = make_session(lambda request: reply_stream("unused"))
    with pytest.raises(ValueError, match="empty"):
        await session.send("   ")
    await session.client.aclose()
    assert session.messages == []


def test_invalid_history_limit():
    with pytest.raises(ValueError):
        make_session(lambda request: reply_stream("unused"), max_history_messages=0)


@pytest.mark.asyncio
async def test_clear():
    session = make_session(lambda request: reply_stream("oi"))
    await session.send("Oi")
    session.clear()
    await session.client.aclose()
    assert session.messages == []
