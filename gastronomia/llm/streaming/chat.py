"""
HTTP side of chat streaming: opens the request, checks the response and
hands the body to the decoder.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from gastronomia.logging_utils import operation_context

from ..exceptions import (
    DEFAULT_UPSTREAM_MESSAGE,
    CreditsExhaustedError,
    NoBodyError,
    RateLimitError,
    StreamingError,
    UpstreamError,
)
from .decoder import DeltaCallback, DoneCallback, StreamDecoder, decode_stream
from .models import StreamChunk, StreamChunkType

# Statuses for which a response never carries a body
NULL_BODY_STATUSES = frozenset({101, 103, 204, 205, 304})


def _error_message(response: httpx.Response) -> tuple[str, dict[str, Any]]:
    try:
        data = response.json()
    except ValueError:
        return DEFAULT_UPSTREAM_MESSAGE, {}

    if not isinstance(data, dict):
        return DEFAULT_UPSTREAM_MESSAGE, {}

    message = data.get("error")
    if isinstance(message, dict):
        # OpenAI-style {"error": {"message": ...}}
        message = message.get("message")
    if not isinstance(message, str) or not message:
        message = DEFAULT_UPSTREAM_MESSAGE
    return message, data


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


async def raise_for_upstream(response: httpx.Response) -> None:
    """Raise the matching error for an unusable streaming response.

    Raises:
        UpstreamError: the response status is not 2xx (subclasses for 429
            and 402).
        NoBodyError: the status is successful but cannot carry a body.
    """
    if not response.is_success:
        await response.aread()
        message, data = _error_message(response)
        kwargs = {"status_code": response.status_code, "response_data": data}

        if response.status_code == 429:
            raise RateLimitError(
                message, retry_after=_retry_after(response), **kwargs
            )
        if response.status_code == 402:
            raise CreditsExhaustedError(message, **kwargs)
        raise UpstreamError(message, **kwargs)

    if (
        response.status_code in NULL_BODY_STATUSES
        or response.request.method == "HEAD"
    ):
        raise NoBodyError(status_code=response.status_code)


@asynccontextmanager
async def open_chat_stream(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> AsyncIterator[httpx.Response]:
    """POST ``payload`` and yield the checked, still-unread response."""
    request_headers = {"Accept": "text/event-stream", **(headers or {})}
    async with client.stream(
        "POST", url, json=payload, headers=request_headers
    ) as response:
        await raise_for_upstream(response)
        yield response


async def _read_body(response: httpx.Response) -> AsyncIterator[bytes]:
    """Body bytes of ``response``; transport failures surface as StreamingError."""
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.TransportError as e:
        raise StreamingError(
            f"Stream interrupted: {e}", status_code=response.status_code
        ) from e


def build_chat_payload(
    messages: list[dict[str, str]],
    recipe_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"messages": messages}
    if recipe_context is not None:
        payload["recipe_context"] = recipe_context
    return payload


async def stream_chat(
    client: httpx.AsyncClient,
    url: str,
    messages: list[dict[str, str]],
    on_delta: DeltaCallback,
    on_done: DoneCallback,
    *,
    recipe_context: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> StreamDecoder:
    """
    Stream a chat reply, delivering fragments to ``on_delta``.

    ``on_done`` is called exactly once after the last fragment. Leaving
    early (cancelling the task) closes the underlying connection.

    Raises:
        UpstreamError: The chat endpoint answered with a non-2xx status.
        NoBodyError: The chat endpoint answered without a body.
        StreamingError: The connection failed while the reply was being read.
    """
    payload = build_chat_payload(messages, recipe_context)

    async with operation_context(
        "stream_chat", context={"url": url, "messages": len(messages)}
    ) as op_logger:
        async with open_chat_stream(client, url, payload, headers) as response:
            decoder = await decode_stream(_read_body(response), on_delta, on_done)
        op_logger.debug("Stream decoded", **decoder.stats)
        return decoder


async def iter_chat_chunks(
    client: httpx.AsyncClient,
    url: str,
    messages: list[dict[str, str]],
    *,
    recipe_context: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> AsyncGenerator[StreamChunk]:
    """
    Async-generator form of :func:`stream_chat`.

    Yields one CONTENT chunk per fragment and a final COMPLETION chunk.
    """
    payload = build_chat_payload(messages, recipe_context)
    pending: list[str] = []
    accumulated = ""

    async with open_chat_stream(client, url, payload, headers) as response:
        decoder = StreamDecoder(pending.append, lambda: None)

        async for raw in _read_body(response):
            decoder.feed(raw)
            for fragment in pending:
                accumulated += fragment
                yield StreamChunk(StreamChunkType.CONTENT, fragment, accumulated)
            pending.clear()
            if decoder.done:
                break

        decoder.finish()
        for fragment in pending:
            accumulated += fragment
            yield StreamChunk(StreamChunkType.CONTENT, fragment, accumulated)

    yield StreamChunk(StreamChunkType.COMPLETION, None, accumulated)
