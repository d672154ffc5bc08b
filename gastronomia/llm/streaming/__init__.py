"""
Streaming functionality for chat replies.

This package contains:
- Event-stream line decoding
- Chat request/response handling on top of httpx
"""

from .chat import iter_chat_chunks, raise_for_upstream, stream_chat
from .decoder import StreamDecoder, classify_line, decode_stream, extract_fragment
from .models import DecoderState, Frame, FrameKind, StreamChunk, StreamChunkType

__all__ = [
    "DecoderState",
    "Frame",
    "FrameKind",
    "StreamChunk",
    "StreamChunkType",
    "StreamDecoder",
    "classify_line",
    "decode_stream",
    "extract_fragment",
    "iter_chat_chunks",
    "raise_for_upstream",
    "stream_chat",
]
