"""Async client SDK for OpenAI-compatible generative-AI APIs."""

from genai_client.client import AsyncGenAIClient
from genai_client.config import ClientConfig, ProfileSpec, load_config
from genai_client.errors import (
    APIError,
    GenAIError,
    StreamCancelledError,
    StreamDecodeError,
    StreamError,
    StreamTransportError,
)
from genai_client.streaming import ChatStreamHandle, ResponseStreamHandle, StreamUpdate
from genai_client.types import (
    Assistant,
    ChatCompletion,
    ChatCompletionChoice,
    ChatCompletionTool,
    ChatMessage,
    DeletedObject,
    FileObject,
    FunctionCall,
    ObjectList,
    ResponseStreamEvent,
    ToolCall,
)

__version__ = "0.3.0"

__all__ = [
    "APIError",
    "Assistant",
    "AsyncGenAIClient",
    "ChatCompletion",
    "ChatCompletionChoice",
    "ChatCompletionTool",
    "ChatMessage",
    "ChatStreamHandle",
    "ClientConfig",
    "DeletedObject",
    "FileObject",
    "FunctionCall",
    "GenAIError",
    "ObjectList",
    "ProfileSpec",
    "ResponseStreamEvent",
    "ResponseStreamHandle",
    "StreamCancelledError",
    "StreamDecodeError",
    "StreamError",
    "StreamTransportError",
    "StreamUpdate",
    "ToolCall",
    "load_config",
]
