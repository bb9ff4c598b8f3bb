"""Handles returned by streaming calls.

The session delivers through a callback; the handle additionally queues
every invocation so callers can consume the stream as an async iterator
or wait for an aggregated result.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator

from genai_client.types import (
    ChatCompletion,
    ChatCompletionChoice,
    ChatMessage,
    ToolCall,
)

from .session import StreamCallback, invoke_callback

_logger = logging.getLogger(__name__)


@dataclass
class StreamUpdate:
    """One callback invocation: ``(payload, done, error)``."""

    payload: Any
    done: bool
    error: Exception | None = None


class StreamHandle:
    """Control and consume one running stream.

    ``async for update in handle`` yields every update in delivery order
    and stops after the terminal one.  A handle supports one consumer.

    A *buffered* handle queues every update until it is consumed.  Handles
    created with a *callback* are unbuffered by default: the callback sees
    every update and only the terminal one is queued, so a callback-only
    stream holds no chunks in memory.
    """

    def __init__(
        self,
        callback: StreamCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        buffered: bool | None = None,
    ) -> None:
        self._callback = callback
        self.buffered = callback is None if buffered is None else buffered
        self.cancel_event = cancel_event or asyncio.Event()
        self._queue: asyncio.Queue[StreamUpdate] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._exhausted = False

    def attach(self, task: asyncio.Task[None]) -> None:
        self._task = task

    async def deliver(self, payload: Any, done: bool, error: Exception | None) -> None:
        """Session callback: forward to the user callback, then queue."""
        if self._callback is not None:
            await invoke_callback(self._callback, payload, done, error)
        if self.buffered or done:
            self._queue.put_nowait(StreamUpdate(payload, done, error))

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Request cancellation; observed before the next line is read."""
        self.cancel_event.set()

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def wait(self) -> None:
        """Wait until the session task has returned."""
        if self._task is not None:
            await self._task

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def __aiter__(self) -> AsyncIterator[StreamUpdate]:
        return self

    async def __anext__(self) -> StreamUpdate:
        if self._exhausted:
            raise StopAsyncIteration
        update = await self._queue.get()
        if update.done:
            self._exhausted = True
        return update


class ChatStreamHandle(StreamHandle):

    async def collect(self) -> ChatCompletion:
        """Drain the stream into a single completion.

        Delta contents of the non-terminal updates are concatenated; tool
        calls come from the final message.  A terminal error is raised.
        """
        if not self.buffered:
            raise RuntimeError("collect() needs a buffered handle")
        parts: list[str] = []
        tool_calls: list[ToolCall] = []
        finish_reason = ""
        model = ""
        completion_id = ""

        async for update in self:
            if update.error is not None:
                raise update.error
            chunk: ChatCompletion = update.payload
            if chunk.model:
                model = chunk.model
            if chunk.id:
                completion_id = chunk.id
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            if choice.finish_reason:
                finish_reason = choice.finish_reason
            if choice.message.tool_calls:
                tool_calls = choice.message.tool_calls
            if not update.done:
                parts.append(choice.delta.content_text())

        return ChatCompletion(
            id=completion_id,
            object="chat.completion",
            model=model,
            choices=[
                ChatCompletionChoice(
                    message=ChatMessage.assistant(
                        content="".join(parts),
                        tool_calls=tool_calls or None,
                    ),
                    finish_reason=finish_reason,
                ),
            ],
        )


class ResponseStreamHandle(StreamHandle):

    async def collect(self) -> dict[str, Any]:
        """Drain the stream and return the final ``response`` object."""
        final: dict[str, Any] = {}
        async for update in self:
            if update.error is not None:
                raise update.error
            if update.done and update.payload.type:
                final = update.payload.response
        return final
