"""Read loops that turn a streamed HTTP body into callback invocations.

A session owns one live ``httpx.Response`` and one delivery callback.  Per
line it polls the cancellation event, classifies the line and, for data
lines, decodes and forwards the payload.  Emission contract:

- callbacks run in line order, one at a time;
- exactly one invocation carries ``done=True`` and nothing follows it;
- the response is closed on every exit path.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Callable

import httpx

from genai_client.errors import (
    StreamCancelledError,
    StreamDecodeError,
    StreamTransportError,
)
from genai_client.types import (
    ChatCompletion,
    ChatCompletionChoice,
    ChatMessage,
    ResponseStreamEvent,
)

from .assembler import ToolCallAssembler
from .lines import FrameKind, classify_line

_logger = logging.getLogger(__name__)

# (payload, done, error) -> None, sync or async
StreamCallback = Callable[[Any, bool, "Exception | None"], Any]

TERMINAL_RESPONSE_EVENTS = frozenset({
    "response.completed",
    "response.failed",
    "response.cancelled",
})

PING_TYPE = "ping"


async def invoke_callback(
    callback: StreamCallback,
    payload: Any,
    done: bool,
    error: Exception | None,
) -> None:
    """Call *callback*, awaiting it if it is a coroutine function.

    Exceptions raised by the callback are logged and do not propagate.
    """
    try:
        result = callback(payload, done, error)
        if inspect.isawaitable(result):
            await result
    except Exception:
        _logger.exception(
            "Stream callback %s raised (done=%s)",
            getattr(callback, "__name__", callback), done,
        )


def _decode_object(data: str) -> dict[str, Any]:
    try:
        obj = json.loads(data)
    except json.JSONDecodeError as e:
        raise StreamDecodeError(f"invalid JSON in data line: {e}", data) from e
    if not isinstance(obj, dict):
        raise StreamDecodeError(
            f"expected a JSON object in data line, got {type(obj).__name__}",
            data,
        )
    return obj


class StreamSession:
    """Shared read loop.  Subclasses define payload decoding."""

    def __init__(
        self,
        response: httpx.Response,
        callback: StreamCallback,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        self._response = response
        self._callback = callback
        self._cancel_event = cancel_event or asyncio.Event()
        self._finished = False

    @property
    def finished(self) -> bool:
        """True once the terminal callback has been made."""
        return self._finished

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def empty_payload(self) -> Any:
        raise NotImplementedError

    def terminator_payload(self) -> Any:
        return self.empty_payload()

    async def handle_data(self, data: str) -> bool:
        """Process one data payload.  Return True to stop reading."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        try:
            if self._cancelled():
                await self._cancel()
                return

            async for line in self._response.aiter_lines():
                if self._cancelled():
                    await self._cancel()
                    return

                frame = classify_line(line)
                if frame.kind is FrameKind.DATA:
                    try:
                        stop = await self.handle_data(frame.data)
                    except StreamDecodeError as e:
                        _logger.warning("Aborting stream: %s", e)
                        await self._finish(self.empty_payload(), e)
                        return
                    if stop:
                        return
                elif frame.kind is FrameKind.DONE:
                    await self._finish(self.terminator_payload())
                    return
                elif frame.kind is FrameKind.UNKNOWN:
                    _logger.debug("Skipping unrecognised stream line: %.80s", line)

            # Body ended without a terminator
            if self._cancelled():
                await self._cancel()
            else:
                _logger.debug("Stream body ended without a terminator")
                await self._finish(self.terminator_payload())
        except (httpx.HTTPError, httpx.StreamError) as e:
            _logger.warning("Stream read failed: %s", e)
            await self._finish(
                self.empty_payload(), StreamTransportError(str(e) or type(e).__name__),
            )
        except asyncio.CancelledError:
            if not self._finished:
                await self._finish(
                    self.empty_payload(), StreamCancelledError("stream task cancelled"),
                )
            raise
        finally:
            await self._response.aclose()
            _logger.debug("Stream response closed")

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def _cancelled(self) -> bool:
        return self._cancel_event.is_set()

    async def _cancel(self) -> None:
        _logger.debug("Stream cancellation observed")
        await self._finish(self.empty_payload(), StreamCancelledError())

    async def emit(self, payload: Any) -> None:
        if self._finished:
            _logger.debug("Dropping payload emitted after terminal callback")
            return
        await invoke_callback(self._callback, payload, False, None)

    async def _finish(self, payload: Any, error: Exception | None = None) -> None:
        if self._finished:
            return
        self._finished = True
        await invoke_callback(self._callback, payload, True, error)


class ChatStreamSession(StreamSession):
    """Chat-completion stream with incremental tool-call assembly."""

    def __init__(
        self,
        response: httpx.Response,
        callback: StreamCallback,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        super().__init__(response, callback, cancel_event)
        self.assembler = ToolCallAssembler()

    def empty_payload(self) -> ChatCompletion:
        return ChatCompletion()

    def terminator_payload(self) -> ChatCompletion:
        return ChatCompletion(
            choices=[ChatCompletionChoice(message=ChatMessage(tool_calls=[]))],
        )

    async def handle_data(self, data: str) -> bool:
        raw = _decode_object(data)
        try:
            chunk = ChatCompletion.from_dict(raw)
        except (TypeError, ValueError, AttributeError) as e:
            raise StreamDecodeError(f"malformed chat chunk: {e}", data) from e

        if chunk.type == PING_TYPE:
            _logger.debug("Skipping heartbeat frame")
            return False

        if self.assembler.update(chunk):
            # final content-bearing event, then the terminal one
            await self.emit(chunk)
            await self._finish(chunk)
            return True

        await self.emit(chunk)
        return False


class ResponseStreamSession(StreamSession):
    """Generic typed-event stream (``/responses``)."""

    def empty_payload(self) -> ResponseStreamEvent:
        return ResponseStreamEvent()

    async def handle_data(self, data: str) -> bool:
        raw = _decode_object(data)
        event_type = raw.get("type")
        if event_type is not None and not isinstance(event_type, str):
            raise StreamDecodeError(
                f"event type must be a string, got {type(event_type).__name__}",
                data,
            )
        event = ResponseStreamEvent.from_dict(raw)
        if event.type in TERMINAL_RESPONSE_EVENTS:
            await self._finish(event)
            return True
        await self.emit(event)
        return False
