"""Typed request options, one model per endpoint family.

Each model validates its fields on construction and renders only the
fields that were set via :meth:`to_params`.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from genai_client.types import ChatCompletionTool


class _Options(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Chat / responses
# ---------------------------------------------------------------------------

class ChatCompletionOptions(_Options):
    temperature: float | None = Field(default=None, ge=0, le=2)
    top_p: float | None = Field(default=None, ge=0, le=1)
    n: int | None = Field(default=None, ge=1)
    max_tokens: int | None = Field(default=None, ge=1)
    stop: str | list[str] | None = None
    presence_penalty: float | None = Field(default=None, ge=-2, le=2)
    frequency_penalty: float | None = Field(default=None, ge=-2, le=2)
    logit_bias: dict[str, int] | None = None
    seed: int | None = None
    user: str | None = None
    response_format: dict[str, Any] | None = None
    tools: list[ChatCompletionTool] | None = None
    tool_choice: str | dict[str, Any] | None = None
    parallel_tool_calls: bool | None = None
    include_usage: bool | None = None  # stream_options.include_usage

    @model_validator(mode="after")
    def _check_tool_choice(self) -> ChatCompletionOptions:
        if self.tool_choice is not None and not self.tools:
            raise ValueError("tool_choice requires tools")
        if isinstance(self.stop, list) and len(self.stop) > 4:
            raise ValueError("at most 4 stop sequences are allowed")
        return self

    @staticmethod
    def tool_choice_for(name: str) -> dict[str, Any]:
        """``tool_choice`` value forcing a call to function *name*."""
        return {"type": "function", "function": {"name": name}}

    def to_params(self) -> dict[str, Any]:
        params = self.model_dump(exclude_none=True, exclude={"tools", "include_usage"})
        if self.tools:
            params["tools"] = [t.to_dict() for t in self.tools]
        if self.include_usage is not None:
            params["stream_options"] = {"include_usage": self.include_usage}
        return params


class ResponseOptions(_Options):
    instructions: str | None = None
    previous_response_id: str | None = None
    max_output_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0, le=2)
    top_p: float | None = Field(default=None, ge=0, le=1)
    tools: list[dict[str, Any]] | None = None
    tool_choice: str | dict[str, Any] | None = None
    store: bool | None = None
    metadata: dict[str, str] | None = None
    user: str | None = None


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

class ImageSize(str, enum.Enum):
    SIZE_256 = "256x256"
    SIZE_512 = "512x512"
    SIZE_1024 = "1024x1024"
    SIZE_1792_1024 = "1792x1024"
    SIZE_1024_1792 = "1024x1792"


class ImageStyle(str, enum.Enum):
    VIVID = "vivid"
    NATURAL = "natural"


class ImageResponseFormat(str, enum.Enum):
    URL = "url"
    B64_JSON = "b64_json"


_DALLE3_SIZES = {"1024x1024", "1792x1024", "1024x1792"}
_DALLE2_SIZES = {"256x256", "512x512", "1024x1024"}


class ImageOptions(_Options):
    model: str | None = None
    n: int | None = Field(default=None, ge=1, le=10)
    quality: str | None = None
    response_format: ImageResponseFormat | None = None
    size: ImageSize | None = None
    style: ImageStyle | None = None
    user: str | None = None

    @model_validator(mode="after")
    def _check_model_constraints(self) -> ImageOptions:
        if self.model == "dall-e-3":
            if self.n is not None and self.n != 1:
                raise ValueError("dall-e-3 only supports n=1")
            if self.size is not None and self.size not in _DALLE3_SIZES:
                raise ValueError(f"size {self.size} not supported by dall-e-3")
        else:
            if self.quality == "hd":
                raise ValueError("quality 'hd' is only supported by dall-e-3")
            if self.style is not None:
                raise ValueError("style is only supported by dall-e-3")
            if self.model == "dall-e-2" and self.size is not None \
                    and self.size not in _DALLE2_SIZES:
                raise ValueError(f"size {self.size} not supported by dall-e-2")
        return self


class ImageEditOptions(_Options):
    """Options for ``images/edits``; the mask is passed to the call itself."""

    model: str | None = None
    n: int | None = Field(default=None, ge=1, le=10)
    size: ImageSize | None = None
    response_format: ImageResponseFormat | None = None
    user: str | None = None

    @model_validator(mode="after")
    def _check_size(self) -> ImageEditOptions:
        if self.size is not None and self.size not in _DALLE2_SIZES:
            raise ValueError(f"size {self.size} not supported for image edits")
        return self


class ImageVariationOptions(_Options):
    model: str | None = None  # only dall-e-2 supports variations
    n: int | None = Field(default=None, ge=1, le=10)
    size: ImageSize | None = None
    response_format: ImageResponseFormat | None = None
    user: str | None = None

    @model_validator(mode="after")
    def _check_size(self) -> ImageVariationOptions:
        if self.size is not None and self.size not in _DALLE2_SIZES:
            raise ValueError(f"size {self.size} not supported for image variations")
        return self


# ---------------------------------------------------------------------------
# Audio
# ---------------------------------------------------------------------------

class SpeechVoice(str, enum.Enum):
    ALLOY = "alloy"
    ECHO = "echo"
    FABLE = "fable"
    ONYX = "onyx"
    NOVA = "nova"
    SHIMMER = "shimmer"


class SpeechResponseFormat(str, enum.Enum):
    MP3 = "mp3"
    OPUS = "opus"
    AAC = "aac"
    FLAC = "flac"


class SpeechOptions(_Options):
    response_format: SpeechResponseFormat | None = None
    speed: float | None = Field(default=None, ge=0.25, le=4.0)


class TranscriptionResponseFormat(str, enum.Enum):
    JSON = "json"
    TEXT = "text"
    SRT = "srt"
    VERBOSE_JSON = "verbose_json"
    VTT = "vtt"


class TranscriptionOptions(_Options):
    """Options for transcriptions and translations (``language`` is
    ignored by the translation endpoint)."""

    prompt: str | None = None
    response_format: TranscriptionResponseFormat | None = None
    temperature: float | None = Field(default=None, ge=0, le=1)
    language: str | None = None


# ---------------------------------------------------------------------------
# Files / assistants
# ---------------------------------------------------------------------------

class FilePurpose(str, enum.Enum):
    ASSISTANTS = "assistants"
    BATCH = "batch"
    FINE_TUNE = "fine-tune"
    VISION = "vision"
    USER_DATA = "user_data"


class ListOptions(_Options):
    """Cursor pagination for list endpoints."""

    limit: int | None = Field(default=None, ge=1, le=100)
    order: str | None = Field(default=None, pattern="^(asc|desc)$")
    after: str | None = None
    before: str | None = None


class AssistantOptions(_Options):
    """Fields for creating or modifying an assistant.

    ``model`` is required on creation and is passed separately there.
    """

    model: str | None = None
    name: str | None = Field(default=None, max_length=256)
    description: str | None = Field(default=None, max_length=512)
    instructions: str | None = None
    tools: list[ChatCompletionTool | dict[str, Any]] | None = None
    tool_resources: dict[str, Any] | None = None
    metadata: dict[str, str] | None = None
    temperature: float | None = Field(default=None, ge=0, le=2)
    top_p: float | None = Field(default=None, ge=0, le=1)
    response_format: str | dict[str, Any] | None = None

    def to_params(self) -> dict[str, Any]:
        params = self.model_dump(exclude_none=True, exclude={"tools"})
        if self.tools is not None:
            params["tools"] = [
                t.to_dict() if isinstance(t, ChatCompletionTool) else t
                for t in self.tools
            ]
        return params
