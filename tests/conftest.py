"""Shared fixtures: scripted SSE bodies and callback recorders."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest


class ScriptedStream(httpx.AsyncByteStream):
    """Async body yielding fixed chunks, optionally failing at the end.

    With *gate*, every chunk after the first waits for the event.
    """

    def __init__(
        self,
        chunks: list[bytes],
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self._chunks = chunks
        self._error = error
        self._gate = gate
        self.closed = False

    async def __aiter__(self):
        for i, chunk in enumerate(self._chunks):
            if self._gate is not None and i > 0:
                await self._gate.wait()
            yield chunk
        if self._error is not None:
            raise self._error

    async def aclose(self) -> None:
        self.closed = True


def sse_body(lines: list[str]) -> list[bytes]:
    return [(line + "\n").encode() for line in lines]


def data_line(obj: Any) -> str:
    return "data: " + json.dumps(obj)


def chunk_line(
    content: str | None = None,
    tool_call: dict[str, Any] | None = None,
    finish_reason: str | None = None,
) -> str:
    delta: dict[str, Any] = {}
    if content is not None:
        delta["content"] = content
    if tool_call is not None:
        delta["tool_calls"] = [tool_call]
    choice: dict[str, Any] = {"index": 0, "delta": delta}
    if finish_reason is not None:
        choice["finish_reason"] = finish_reason
    return data_line({
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "model": "test-model",
        "choices": [choice],
    })


def make_response(
    lines: list[str],
    error: Exception | None = None,
    gate: asyncio.Event | None = None,
) -> tuple[httpx.Response, ScriptedStream]:
    stream = ScriptedStream(sse_body(lines), error=error, gate=gate)
    resp = httpx.Response(
        200,
        headers={"content-type": "text/event-stream"},
        stream=stream,
        request=httpx.Request("POST", "http://test/v1/chat/completions"),
    )
    return resp, stream


class Recorder:
    """Synchronous delivery callback that records every invocation."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, bool, Exception | None]] = []

    def __call__(self, payload: Any, done: bool, error: Exception | None) -> None:
        self.calls.append((payload, done, error))

    @property
    def terminal_calls(self) -> list[tuple[Any, bool, Exception | None]]:
        return [c for c in self.calls if c[1]]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
