"""Streaming response decoding."""

from genai_client.streaming.assembler import ToolCallAssembler
from genai_client.streaming.handle import (
    ChatStreamHandle,
    ResponseStreamHandle,
    StreamHandle,
    StreamUpdate,
)
from genai_client.streaming.lines import FrameKind, StreamFrame, classify_line
from genai_client.streaming.session import (
    ChatStreamSession,
    ResponseStreamSession,
    StreamCallback,
    StreamSession,
)

__all__ = [
    "ChatStreamHandle",
    "ChatStreamSession",
    "FrameKind",
    "ResponseStreamHandle",
    "ResponseStreamSession",
    "StreamCallback",
    "StreamFrame",
    "StreamHandle",
    "StreamSession",
    "StreamUpdate",
    "ToolCallAssembler",
    "classify_line",
]
