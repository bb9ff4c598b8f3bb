"""Async client for an OpenAI-compatible generative-AI API.

Uses ``httpx.AsyncClient``.  Streaming calls wait for the response
headers, raise :class:`~genai_client.errors.APIError` on a non-success
status, then hand the open body to a stream session running in its own
task and return a handle immediately.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, TypeVar

import httpx

from genai_client.config import ClientConfig
from genai_client.errors import APIError
from genai_client.multipart import FileField, FormField, PlainField, encode_form
from genai_client.options import (
    AssistantOptions,
    ChatCompletionOptions,
    FilePurpose,
    ImageEditOptions,
    ImageOptions,
    ImageVariationOptions,
    ListOptions,
    ResponseOptions,
    SpeechOptions,
    TranscriptionOptions,
)
from genai_client.streaming import (
    ChatStreamHandle,
    ChatStreamSession,
    ResponseStreamHandle,
    ResponseStreamSession,
    StreamCallback,
    StreamHandle,
    StreamSession,
)
from genai_client.types import (
    Assistant,
    ChatCompletion,
    ChatMessage,
    DeletedObject,
    FileObject,
    GeneratedImages,
    ObjectList,
    Transcription,
)

_logger = logging.getLogger(__name__)

_TEXT_TRANSCRIPT_FORMATS = ("text", "srt", "vtt")
_ASSISTANTS_BETA = "assistants=v2"

_H = TypeVar("_H", bound=StreamHandle)


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _message_dicts(messages: list[ChatMessage | dict[str, Any]]) -> list[dict[str, Any]]:
    return [m.to_dict() if isinstance(m, ChatMessage) else m for m in messages]


class AsyncGenAIClient:
    """Client for chat, responses, image and audio endpoints."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        profile = self.config.active_profile
        self.profile = profile

        headers = profile.headers()

        self._client = httpx.AsyncClient(
            base_url=profile.base_url,
            headers=headers,
            timeout=httpx.Timeout(
                self.config.timeout,
                connect=self.config.connect_timeout,
                read=self.config.read_timeout,
            ),
            transport=transport,
        )
        self._stream_client = httpx.AsyncClient(
            base_url=profile.base_url,
            headers=headers,
            timeout=httpx.Timeout(
                self.config.timeout,
                connect=self.config.connect_timeout,
                read=self.config.stream_read_timeout,
            ),
            transport=transport,
        )
        self._stream_tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Chat completions
    # ------------------------------------------------------------------

    async def create_chat_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        options: ChatCompletionOptions | None = None,
        *,
        stream: bool = False,
        on_chunk: StreamCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        buffered: bool | None = None,
    ) -> ChatCompletion | ChatStreamHandle:
        """Create a chat completion.

        With ``stream=True`` or an ``on_chunk`` callback, returns a
        :class:`ChatStreamHandle` as soon as the response headers arrive;
        chunks are then delivered as ``on_chunk(chunk, done, error)``.  With a
        callback the handle keeps only the terminal update unless
        ``buffered=True``; see :class:`StreamHandle`.
        """
        payload: dict[str, Any] = {
            "model": model,
            "messages": _message_dicts(messages),
        }
        if options is not None:
            payload.update(options.to_params())

        if stream or on_chunk is not None:
            payload["stream"] = True
            handle = ChatStreamHandle(on_chunk, cancel_event, buffered)
            response = await self._open_stream("/chat/completions", payload)
            return self._start(ChatStreamSession(response, handle.deliver, handle.cancel_event), handle)

        data = await self._post_json("/chat/completions", payload)
        return ChatCompletion.from_dict(data)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def create_response(
        self,
        model: str,
        input: str | list[dict[str, Any]],
        options: ResponseOptions | None = None,
        *,
        stream: bool = False,
        on_event: StreamCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        buffered: bool | None = None,
    ) -> dict[str, Any] | ResponseStreamHandle:
        """Create a model response; streams typed events like chat does."""
        payload: dict[str, Any] = {"model": model, "input": input}
        if options is not None:
            payload.update(options.to_params())

        if stream or on_event is not None:
            payload["stream"] = True
            handle = ResponseStreamHandle(on_event, cancel_event, buffered)
            response = await self._open_stream("/responses", payload)
            return self._start(ResponseStreamSession(response, handle.deliver, handle.cancel_event), handle)

        return await self._post_json("/responses", payload)

    # ------------------------------------------------------------------
    # Images / audio
    # ------------------------------------------------------------------

    async def create_image(
        self,
        prompt: str,
        options: ImageOptions | None = None,
    ) -> GeneratedImages:
        payload: dict[str, Any] = {"prompt": prompt}
        if options is not None:
            payload.update(options.to_params())
        data = await self._post_json("/images/generations", payload)
        return GeneratedImages.from_dict(data)

    async def create_image_edit(
        self,
        image: FileField,
        prompt: str,
        options: ImageEditOptions | None = None,
        *,
        mask: FileField | None = None,
    ) -> GeneratedImages:
        """Edit or extend *image*; transparent areas of *mask* mark the edit."""
        fields: dict[str, FormField] = {"image": image, "prompt": PlainField(prompt)}
        if mask is not None:
            fields["mask"] = mask
        params = options.to_params() if options is not None else {}
        resp = await self._post_form("/images/edits", fields, params)
        return GeneratedImages.from_dict(self._decode_json(resp))

    async def create_image_variation(
        self,
        image: FileField,
        options: ImageVariationOptions | None = None,
    ) -> GeneratedImages:
        params = options.to_params() if options is not None else {}
        resp = await self._post_form("/images/variations", {"image": image}, params)
        return GeneratedImages.from_dict(self._decode_json(resp))

    async def create_speech(
        self,
        model: str,
        input: str,
        voice: str,
        options: SpeechOptions | None = None,
    ) -> bytes:
        """Generate audio from *input*; returns the encoded audio bytes."""
        payload: dict[str, Any] = {"model": model, "input": input, "voice": voice}
        if options is not None:
            payload.update(options.to_params())
        resp = await self._send("POST", "/audio/speech", json=payload)
        return resp.content

    async def create_transcription(
        self,
        file: FileField,
        model: str,
        options: TranscriptionOptions | None = None,
    ) -> Transcription:
        return await self._transcribe("/audio/transcriptions", file, model, options)

    async def create_translation(
        self,
        file: FileField,
        model: str,
        options: TranscriptionOptions | None = None,
    ) -> Transcription:
        """Translate audio into English."""
        if options is not None and options.language is not None:
            options = options.model_copy(update={"language": None})
        return await self._transcribe("/audio/translations", file, model, options)

    async def _transcribe(
        self,
        endpoint: str,
        file: FileField,
        model: str,
        options: TranscriptionOptions | None,
    ) -> Transcription:
        fields: dict[str, FormField] = {"file": file, "model": PlainField(model)}
        params = options.to_params() if options is not None else {}
        resp = await self._post_form(endpoint, fields, params)

        if params.get("response_format") in _TEXT_TRANSCRIPT_FORMATS:
            return Transcription(text=resp.text)
        return Transcription.from_dict(self._decode_json(resp))

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def upload_file(self, file: FileField, purpose: FilePurpose | str) -> FileObject:
        purpose = purpose.value if isinstance(purpose, FilePurpose) else purpose
        resp = await self._post_form("/files", {"file": file}, {"purpose": purpose})
        return FileObject.from_dict(self._decode_json(resp))

    async def list_files(
        self,
        purpose: FilePurpose | str | None = None,
        options: ListOptions | None = None,
    ) -> ObjectList:
        params = options.to_params() if options is not None else {}
        if purpose is not None:
            params["purpose"] = purpose.value if isinstance(purpose, FilePurpose) else purpose
        return await self._list("/files", params, FileObject.from_dict)

    async def retrieve_file(self, file_id: str) -> FileObject:
        return FileObject.from_dict(await self._get_json(f"/files/{file_id}"))

    async def retrieve_file_content(self, file_id: str) -> bytes:
        resp = await self._send("GET", f"/files/{file_id}/content")
        return resp.content

    async def delete_file(self, file_id: str) -> DeletedObject:
        return DeletedObject.from_dict(await self._delete_json(f"/files/{file_id}"))

    # ------------------------------------------------------------------
    # Assistants
    # ------------------------------------------------------------------

    def _assistants_headers(self) -> dict[str, str]:
        return {"OpenAI-Beta": self.profile.beta or _ASSISTANTS_BETA}

    async def create_assistant(
        self,
        model: str,
        options: AssistantOptions | None = None,
    ) -> Assistant:
        payload: dict[str, Any] = options.to_params() if options is not None else {}
        payload["model"] = model
        data = await self._post_json(
            "/assistants", payload, headers=self._assistants_headers(),
        )
        return Assistant.from_dict(data)

    async def list_assistants(self, options: ListOptions | None = None) -> ObjectList:
        params = options.to_params() if options is not None else {}
        return await self._list(
            "/assistants", params, Assistant.from_dict, headers=self._assistants_headers(),
        )

    async def retrieve_assistant(self, assistant_id: str) -> Assistant:
        data = await self._get_json(
            f"/assistants/{assistant_id}", headers=self._assistants_headers(),
        )
        return Assistant.from_dict(data)

    async def modify_assistant(self, assistant_id: str, options: AssistantOptions) -> Assistant:
        data = await self._post_json(
            f"/assistants/{assistant_id}", options.to_params(),
            headers=self._assistants_headers(),
        )
        return Assistant.from_dict(data)

    async def delete_assistant(self, assistant_id: str) -> DeletedObject:
        data = await self._delete_json(
            f"/assistants/{assistant_id}", headers=self._assistants_headers(),
        )
        return DeletedObject.from_dict(data)

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    async def _send(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        if self.config.verbose:
            _logger.info(
                "%s %s%s: %s", method, self.profile.base_url, endpoint,
                kwargs.get("json", kwargs.get("data")),
            )
        resp = await self._client.request(method, endpoint, **kwargs)
        if self.config.verbose:
            _logger.info("API response for %s (%d): %.2000s", endpoint, resp.status_code, resp.text)
        if not _is_success(resp.status_code):
            _logger.warning("API returned %d for %s", resp.status_code, endpoint)
            raise APIError.from_response_body(resp.text, resp.status_code)
        return resp

    @staticmethod
    def _decode_json(resp: httpx.Response) -> dict[str, Any]:
        try:
            data = resp.json()
        except json.JSONDecodeError as e:
            raise APIError(
                f"invalid JSON response: {e}",
                status_code=resp.status_code,
                body=resp.text,
            ) from e
        if not isinstance(data, dict):
            raise APIError(
                "unexpected JSON response shape",
                status_code=resp.status_code,
                body=resp.text,
            )
        if isinstance(data.get("error"), dict):
            raise APIError.from_error_object(data["error"], resp.status_code, resp.text)
        return data

    async def _post_json(
        self,
        endpoint: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        resp = await self._send("POST", endpoint, json=payload, headers=headers)
        return self._decode_json(resp)

    async def _get_json(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        resp = await self._send("GET", endpoint, params=params, headers=headers)
        return self._decode_json(resp)

    async def _delete_json(
        self,
        endpoint: str,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        resp = await self._send("DELETE", endpoint, headers=headers)
        return self._decode_json(resp)

    async def _list(
        self,
        endpoint: str,
        params: dict[str, Any],
        decode: Callable[[dict[str, Any]], Any],
        headers: dict[str, str] | None = None,
    ) -> ObjectList:
        data = await self._get_json(endpoint, params or None, headers)
        return ObjectList(
            data=[decode(item) for item in data.get("data") or []],
            first_id=data.get("first_id"),
            last_id=data.get("last_id"),
            has_more=bool(data.get("has_more", False)),
        )

    async def _post_form(
        self,
        endpoint: str,
        fields: dict[str, FormField],
        params: dict[str, Any],
    ) -> httpx.Response:
        for key, value in params.items():
            fields[key] = PlainField(value)
        data, files = encode_form(fields)
        return await self._send("POST", endpoint, data=data, files=files)

    async def _open_stream(self, endpoint: str, payload: dict[str, Any]) -> httpx.Response:
        """POST *payload* and return the response with its body unread."""
        if self.config.verbose:
            _logger.info("POST %s%s (stream): %s", self.profile.base_url, endpoint, payload)
        request = self._stream_client.build_request("POST", endpoint, json=payload)
        resp = await self._stream_client.send(request, stream=True)
        if not _is_success(resp.status_code):
            try:
                body = (await resp.aread()).decode(errors="replace")
            finally:
                await resp.aclose()
            _logger.warning("Stream API returned %d for %s", resp.status_code, endpoint)
            raise APIError.from_response_body(body, resp.status_code)
        return resp

    def _start(self, session: StreamSession, handle: _H) -> _H:
        task = asyncio.create_task(session.run())
        handle.attach(task)
        self._stream_tasks.add(task)
        task.add_done_callback(self._stream_tasks.discard)
        return handle

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Cancel running streams and close underlying HTTP clients."""
        tasks = list(self._stream_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self._client.aclose()
        await self._stream_client.aclose()

    async def __aenter__(self) -> AsyncGenAIClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
