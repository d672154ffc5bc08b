"""
Streaming-specific dataclasses for the chat decoder.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum

DATA_PREFIX = "data: "
COMMENT_PREFIX = ":"
DONE_SENTINEL = "[DONE]"


class FrameKind(Enum):
    """Classification of one line of an event stream."""
    COMMENT = "comment"
    BLANK = "blank"
    DATA = "data"
    OTHER = "other"


class DecoderState(Enum):
    """Lifecycle of a single decode invocation."""
    STREAMING = "streaming"
    DONE = "done"


class StreamChunkType(Enum):
    """Types of streaming chunks."""
    CONTENT = "content"
    COMPLETION = "completion"


@dataclass(frozen=True)
class Frame:
    """One newline-terminated line taken from the decode buffer."""
    raw: str
    kind: FrameKind

    @property
    def payload(self) -> str:
        """Text after the ``data: `` prefix, trimmed."""
        if self.kind is not FrameKind.DATA:
            return ""
        return self.raw[len(DATA_PREFIX):].strip()


@dataclass(frozen=True)
class StreamChunk:
    """Processed streaming chunk with accumulated state."""
    chunk_type: StreamChunkType
    content: str | None
    accumulated_content: str
    timestamp: float = field(default_factory=time.time)

