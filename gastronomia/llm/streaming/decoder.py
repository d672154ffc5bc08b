"""
Incremental decoder for chat completion event streams.

Turns raw byte chunks framed as ``data: <json>\\n`` lines into text
fragment deliveries followed by a single completion signal. Chunk
boundaries may split a line or a multi-byte character anywhere.
"""

from __future__ import annotations

import codecs
import json
from collections.abc import AsyncIterable, Callable
from typing import Any

import structlog

from .models import (
    COMMENT_PREFIX,
    DATA_PREFIX,
    DONE_SENTINEL,
    DecoderState,
    Frame,
    FrameKind,
)

logger = structlog.get_logger(__name__)

DeltaCallback = Callable[[str], None]
DoneCallback = Callable[[], None]


def classify_line(line: str) -> Frame:
    """Classify one buffered line, dropping a trailing carriage return."""
    if line.endswith("\r"):
        line = line[:-1]

    if line.strip() == "":
        return Frame(raw=line, kind=FrameKind.BLANK)
    if line.startswith(COMMENT_PREFIX):
        return Frame(raw=line, kind=FrameKind.COMMENT)
    if line.startswith(DATA_PREFIX):
        return Frame(raw=line, kind=FrameKind.DATA)
    return Frame(raw=line, kind=FrameKind.OTHER)


def extract_fragment(payload: Any) -> str | None:
    """Pull ``choices[0].delta.content`` out of a parsed event payload."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict):
        return None
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class StreamDecoder:
    """Line-buffered event stream decoder for one stream read.

    Not reentrant: a decoder owns its buffer for the lifetime of a single
    stream and must only be fed from one reader.
    """

    def __init__(
        self,
        on_delta: DeltaCallback,
        on_done: DoneCallback,
        encoding: str = "utf-8",
    ):
        self._on_delta = on_delta
        self._on_done = on_done
        self._bytes = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self.state = DecoderState.STREAMING
        self.stats = {
            "frames": 0,
            "fragments": 0,
            "deferred_lines": 0,
            "dropped_lines": 0,
        }

    @property
    def done(self) -> bool:
        return self.state is DecoderState.DONE

    @property
    def residual(self) -> str:
        """Buffered text not yet terminated by a newline."""
        return self._buffer

    def feed(self, chunk: bytes) -> None:
        """Append a chunk and process every complete line now available."""
        if self.done:
            return

        self._buffer += self._bytes.decode(chunk)

        while not self.done:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break

            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1:]

            if not self._process_line(line):
                # Payload did not parse yet; keep it at the head and wait
                self._buffer = line + "\n" + self._buffer
                self.stats["deferred_lines"] += 1
                break

    def finish(self) -> None:
        """Flush the residual buffer once the transport is exhausted."""
        if self.done:
            return

        self._buffer += self._bytes.decode(b"", final=True)
        residual, self._buffer = self._buffer, ""

        if residual.strip():
            for line in residual.split("\n"):
                if not self._process_line(line):
                    self.stats["dropped_lines"] += 1
                    logger.debug(
                        "Dropping undecodable trailing line",
                        line_preview=line[:80],
                    )
                if self.done:
                    return

        self._complete()

    def _process_line(self, line: str) -> bool:
        """Handle one line; return False when its JSON payload is incomplete."""
        frame = classify_line(line)
        if frame.kind is not FrameKind.DATA:
            return True

        self.stats["frames"] += 1
        payload = frame.payload

        if payload == DONE_SENTINEL:
            self._complete()
            return True

        try:
            parsed = json.loads(payload)
        except (ValueError, RecursionError):
            # Covers truncated JSON and payloads past the parser's limits
            return False

        fragment = extract_fragment(parsed)
        if fragment:
            self.stats["fragments"] += 1
            self._on_delta(fragment)
        return True

    def _complete(self) -> None:
        if self.done:
            return
        self.state = DecoderState.DONE
        self._buffer = ""
        self._on_done()


async def decode_stream(
    chunks: AsyncIterable[bytes],
    on_delta: DeltaCallback,
    on_done: DoneCallback,
) -> StreamDecoder:
    """Drive a fresh decoder over an async byte source until it completes."""
    decoder = StreamDecoder(on_delta, on_done)

    async for chunk in chunks:
        decoder.feed(chunk)
        if decoder.done:
            break

    decoder.finish()
    return decoder
