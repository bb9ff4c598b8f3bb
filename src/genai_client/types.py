"""Wire types for the chat, responses, image, audio, file and assistant endpoints."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# ---------------------------------------------------------------------------
# Tool types
# ---------------------------------------------------------------------------

@dataclass
class FunctionCall:
    """Name and (possibly partial) JSON argument text of a function call."""

    name: str = ""
    arguments: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> FunctionCall:
        raw = raw or {}
        args = raw.get("arguments", "")
        if not isinstance(args, str):
            args = json.dumps(args)
        return cls(name=raw.get("name", "") or "", arguments=args or "")


@dataclass
class ToolCall:
    """A tool call, either a streamed fragment or an assembled record.

    ``index`` is the ordinal position among parallel calls.  It is
    ``None`` on fragments that do not carry one.
    """

    id: str = ""
    type: str = "function"
    index: int | None = None
    function: FunctionCall = field(default_factory=FunctionCall)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ToolCall:
        index = raw.get("index")
        return cls(
            id=raw.get("id", "") or "",
            type=raw.get("type", "function") or "function",
            index=int(index) if index is not None else None,
            function=FunctionCall.from_dict(raw.get("function")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "function": {
                "name": self.function.name,
                "arguments": self.function.arguments,
            },
        }
        if self.index is not None:
            data["index"] = self.index
        return data

    def snapshot(self) -> ToolCall:
        """Return an independent copy of this call."""
        return copy.deepcopy(self)

    def parsed_arguments(self) -> dict[str, Any]:
        """Decode the accumulated argument text.

        Returns an empty dict when the text is empty or not valid JSON.
        """
        raw = self.function.arguments
        if not raw:
            return {}
        try:
            args = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return args if isinstance(args, dict) else {}


@dataclass
class ChatCompletionTool:
    """Tool definition sent with a chat completion request."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    type: str = "function"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


# ---------------------------------------------------------------------------
# Chat types
# ---------------------------------------------------------------------------

@dataclass
class ChatMessage:
    """A chat message, also used for streamed deltas.

    ``content`` is either a plain string or a list of content parts
    (``{"type": "text", "text": ...}``, ``{"type": "image_url", ...}``).
    """

    role: str = ""
    content: str | list[dict[str, Any]] | None = None
    name: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    @classmethod
    def system(cls, content: str) -> ChatMessage:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str | list[dict[str, Any]]) -> ChatMessage:
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls,
        content: str | None = None,
        tool_calls: list[ToolCall] | None = None,
    ) -> ChatMessage:
        return cls(role="assistant", content=content, tool_calls=tool_calls)

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> ChatMessage:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> ChatMessage:
        raw = raw or {}
        tool_calls = raw.get("tool_calls")
        return cls(
            role=raw.get("role", "") or "",
            content=raw.get("content"),
            name=raw.get("name"),
            tool_calls=(
                [ToolCall.from_dict(tc) for tc in tool_calls]
                if tool_calls is not None
                else None
            ),
            tool_call_id=raw.get("tool_call_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({
            "role": self.role,
            "content": self.content,
            "name": self.name,
            "tool_calls": (
                [tc.to_dict() for tc in self.tool_calls]
                if self.tool_calls is not None
                else None
            ),
            "tool_call_id": self.tool_call_id,
        })

    def content_text(self) -> str:
        """Return the textual content, joining text parts of a list."""
        if self.content is None:
            return ""
        if isinstance(self.content, str):
            return self.content
        return "".join(
            part.get("text", "")
            for part in self.content
            if isinstance(part, dict) and part.get("type") == "text"
        )


@dataclass
class ChatCompletionChoice:
    index: int = 0
    delta: ChatMessage = field(default_factory=ChatMessage)
    message: ChatMessage = field(default_factory=ChatMessage)
    finish_reason: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ChatCompletionChoice:
        return cls(
            index=raw.get("index", 0) or 0,
            delta=ChatMessage.from_dict(raw.get("delta")),
            message=ChatMessage.from_dict(raw.get("message")),
            finish_reason=raw.get("finish_reason", "") or "",
        )


@dataclass
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Usage:
        return cls(
            prompt_tokens=raw.get("prompt_tokens", 0) or 0,
            completion_tokens=raw.get("completion_tokens", 0) or 0,
            total_tokens=raw.get("total_tokens", 0) or 0,
        )


@dataclass
class ChatCompletion:
    """A chat completion response, or one chunk of a streamed one."""

    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    type: str | None = None
    choices: list[ChatCompletionChoice] = field(default_factory=list)
    usage: Usage | None = None
    error: dict[str, Any] | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ChatCompletion:
        usage = raw.get("usage")
        return cls(
            id=raw.get("id", "") or "",
            object=raw.get("object", "") or "",
            created=raw.get("created", 0) or 0,
            model=raw.get("model", "") or "",
            type=raw.get("type"),
            choices=[
                ChatCompletionChoice.from_dict(c)
                for c in raw.get("choices") or []
            ],
            usage=Usage.from_dict(usage) if isinstance(usage, dict) else None,
            error=raw.get("error") if isinstance(raw.get("error"), dict) else None,
            raw=raw,
        )

    @property
    def delta_text(self) -> str:
        """Content carried by the first choice's delta (empty if none)."""
        if not self.choices:
            return ""
        return self.choices[0].delta.content_text()


# ---------------------------------------------------------------------------
# Responses API
# ---------------------------------------------------------------------------

@dataclass
class ResponseStreamEvent:
    """A typed event from a ``/responses`` stream.

    Only ``type`` is interpreted by the stream session; every other
    field of the payload is kept verbatim in ``data``.
    """

    type: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ResponseStreamEvent:
        return cls(type=raw.get("type", "") or "", data=raw)

    @property
    def sequence_number(self) -> int | None:
        return self.data.get("sequence_number")

    @property
    def delta(self) -> str:
        delta = self.data.get("delta", "")
        return delta if isinstance(delta, str) else ""

    @property
    def response(self) -> dict[str, Any]:
        return self.data.get("response") or {}

    @property
    def item_id(self) -> str:
        return self.data.get("item_id", "") or ""

    @property
    def output_index(self) -> int | None:
        return self.data.get("output_index")


# ---------------------------------------------------------------------------
# Images / audio
# ---------------------------------------------------------------------------

@dataclass
class GeneratedImage:
    url: str | None = None
    b64_json: str | None = None
    revised_prompt: str | None = None


@dataclass
class GeneratedImages:
    created: int = 0
    data: list[GeneratedImage] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> GeneratedImages:
        return cls(
            created=raw.get("created", 0) or 0,
            data=[
                GeneratedImage(
                    url=item.get("url"),
                    b64_json=item.get("b64_json"),
                    revised_prompt=item.get("revised_prompt"),
                )
                for item in raw.get("data") or []
            ],
        )


@dataclass
class Transcription:
    """Transcription or translation result.

    ``text`` holds the transcript for JSON formats and the raw body for
    ``text``/``srt``/``vtt`` formats.
    """

    text: str = ""
    language: str | None = None
    duration: float | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Transcription:
        return cls(
            text=raw.get("text", "") or "",
            language=raw.get("language"),
            duration=raw.get("duration"),
            raw=raw,
        )


# ---------------------------------------------------------------------------
# Files / assistants
# ---------------------------------------------------------------------------

@dataclass
class FileObject:
    id: str = ""
    bytes: int = 0
    created_at: int = 0
    filename: str = ""
    purpose: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> FileObject:
        return cls(
            id=raw.get("id", "") or "",
            bytes=raw.get("bytes", 0) or 0,
            created_at=raw.get("created_at", 0) or 0,
            filename=raw.get("filename", "") or "",
            purpose=raw.get("purpose", "") or "",
            raw=raw,
        )


@dataclass
class Assistant:
    id: str = ""
    model: str = ""
    created_at: int = 0
    name: str | None = None
    description: str | None = None
    instructions: str | None = None
    tools: list[dict[str, Any]] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Assistant:
        return cls(
            id=raw.get("id", "") or "",
            model=raw.get("model", "") or "",
            created_at=raw.get("created_at", 0) or 0,
            name=raw.get("name"),
            description=raw.get("description"),
            instructions=raw.get("instructions"),
            tools=list(raw.get("tools") or []),
            metadata=dict(raw.get("metadata") or {}),
            raw=raw,
        )


@dataclass
class DeletedObject:
    id: str = ""
    object: str = ""
    deleted: bool = False

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DeletedObject:
        return cls(
            id=raw.get("id", "") or "",
            object=raw.get("object", "") or "",
            deleted=bool(raw.get("deleted", False)),
        )


@dataclass
class ObjectList:
    """One page of a list endpoint; ``data`` holds decoded items."""

    data: list[Any] = field(default_factory=list)
    first_id: str | None = None
    last_id: str | None = None
    has_more: bool = False
