"""Tests for the chat-completion stream session."""

import asyncio

import httpx
import pytest
from conftest import Recorder, chunk_line, data_line, make_response

from genai_client.errors import (
    StreamCancelledError,
    StreamDecodeError,
    StreamTransportError,
)
from genai_client.streaming.session import ChatStreamSession
from genai_client.types import ChatCompletion


async def _run(lines, recorder, **kwargs):
    resp, stream = make_response(lines, **{k: v for k, v in kwargs.items() if k != "cancel_event"})
    session = ChatStreamSession(resp, recorder, kwargs.get("cancel_event"))
    await session.run()
    return session, stream


class TestEmissionContract:
    async def test_end_to_end_content_then_done(self, recorder: Recorder):
        lines = ['data: {"choices":[{"delta":{"content":"Hi"}}]}', "data: [DONE]"]
        session, stream = await _run(lines, recorder)

        assert len(recorder.calls) == 2
        first, done, err = recorder.calls[0]
        assert first.choices[0].delta.content == "Hi"
        assert done is False and err is None
        _, done, err = recorder.calls[1]
        assert done is True and err is None
        assert session.finished
        assert stream.closed

    async def test_terminator_payload_has_placeholder_choice(self, recorder: Recorder):
        await _run(["data: [DONE]"], recorder)
        payload, done, err = recorder.calls[0]
        assert done and err is None
        assert len(payload.choices) == 1
        assert payload.choices[0].message.tool_calls == []

    async def test_lines_after_terminator_are_not_read(self, recorder: Recorder):
        lines = ["data: [DONE]", chunk_line(content="late")]
        await _run(lines, recorder)
        assert len(recorder.calls) == 1

    async def test_blank_event_and_unknown_lines_are_skipped(self, recorder: Recorder):
        lines = [
            "",
            ": keep-alive",
            "event: message",
            "id: 7",
            chunk_line(content="a"),
            "",
            "data: [DONE]",
        ]
        await _run(lines, recorder)
        assert [c[1] for c in recorder.calls] == [False, True]

    async def test_end_of_body_without_terminator(self, recorder: Recorder):
        _, stream = await _run([chunk_line(content="a")], recorder)
        assert [c[1] for c in recorder.calls] == [False, True]
        assert recorder.calls[-1][2] is None
        assert stream.closed

    async def test_async_callback(self):
        received = []

        async def on_chunk(payload, done, error):
            await asyncio.sleep(0)
            received.append((payload, done, error))

        resp, _ = make_response([chunk_line(content="x"), "data: [DONE]"])
        await ChatStreamSession(resp, on_chunk).run()
        assert [r[1] for r in received] == [False, True]

    async def test_callback_exception_does_not_break_stream(self, caplog):
        calls = []

        def on_chunk(payload, done, error):
            calls.append(done)
            if not done:
                raise RuntimeError("consumer failed")

        resp, stream = make_response([chunk_line(content="x"), "data: [DONE]"])
        await ChatStreamSession(resp, on_chunk).run()
        assert calls == [False, True]
        assert stream.closed
        assert "consumer failed" in caplog.text


class TestToolCallStreams:
    async def test_fragments_assemble_and_double_callback(self, recorder: Recorder):
        lines = [
            chunk_line(tool_call={"index": 0, "id": "call_1", "type": "function",
                                  "function": {"name": "f", "arguments": ""}}),
            chunk_line(tool_call={"index": 0, "function": {"arguments": '{"a":'}}),
            chunk_line(tool_call={"index": 0, "function": {"arguments": "1}"}}),
            chunk_line(finish_reason="tool_calls"),
            "data: [DONE]",
        ]
        _, stream = await _run(lines, recorder)

        assert [c[1] for c in recorder.calls] == [False, False, False, False, True]
        final_event, terminal = recorder.calls[-2], recorder.calls[-1]
        assert final_event[0] is terminal[0]
        assert terminal[2] is None

        calls = terminal[0].choices[0].message.tool_calls
        assert len(calls) == 1
        assert calls[0].id == "call_1"
        assert calls[0].function.name == "f"
        assert calls[0].function.arguments == '{"a":1}'
        assert stream.closed

    async def test_parallel_calls_in_arrival_order(self, recorder: Recorder):
        lines = [
            chunk_line(tool_call={"index": 0, "id": "call_a", "function": {"name": "get_weather"}}),
            chunk_line(tool_call={"index": 0, "function": {"arguments": '{"city": "Seoul"}'}}),
            chunk_line(tool_call={"index": 1, "id": "call_b", "function": {"name": "get_time"}}),
            chunk_line(tool_call={"index": 1, "function": {"arguments": '{"tz": "KST"}'}}),
            chunk_line(finish_reason="tool_calls"),
        ]
        await _run(lines, recorder)
        calls = recorder.calls[-1][0].choices[0].message.tool_calls
        assert [c.function.name for c in calls] == ["get_weather", "get_time"]
        assert [c.parsed_arguments() for c in calls] == [{"city": "Seoul"}, {"tz": "KST"}]

    async def test_stop_with_call_id_finalizes(self, recorder: Recorder):
        lines = [
            chunk_line(tool_call={"index": 0, "id": "call_1", "function": {"name": "f"}}),
            chunk_line(tool_call={"index": 0, "function": {"arguments": "{}"}}),
            chunk_line(finish_reason="stop"),
            chunk_line(content="never delivered"),
        ]
        await _run(lines, recorder)
        assert [c[1] for c in recorder.calls] == [False, False, False, True]
        assert recorder.calls[-1][0].choices[0].message.tool_calls[0].id == "call_1"

    async def test_terminator_mid_call_does_not_flush_partial(self, recorder: Recorder):
        lines = [
            chunk_line(tool_call={"index": 0, "id": "call_1", "function": {"name": "f"}}),
            chunk_line(tool_call={"index": 0, "function": {"arguments": '{"a":'}}),
            "data: [DONE]",
            chunk_line(finish_reason="tool_calls"),
        ]
        session, stream = await _run(lines, recorder)

        assert [c[1] for c in recorder.calls] == [False, False, True]
        assert len(recorder.terminal_calls) == 1
        payload, _, err = recorder.calls[-1]
        assert err is None
        assert payload.choices[0].message.tool_calls == []
        assert session.assembler.completed == []
        assert stream.closed

    async def test_stop_without_tool_call_is_plain_chunk(self, recorder: Recorder):
        lines = [chunk_line(content="done."), chunk_line(finish_reason="stop"), "data: [DONE]"]
        await _run(lines, recorder)
        assert [c[1] for c in recorder.calls] == [False, False, True]
        assert recorder.calls[1][0].choices[0].finish_reason == "stop"


class TestHeartbeats:
    async def test_ping_produces_no_callback(self, recorder: Recorder):
        await _run([data_line({"type": "ping"}), "data: [DONE]"], recorder)
        assert len(recorder.calls) == 1
        assert recorder.calls[0][1] is True

    async def test_ping_does_not_alter_assembly(self, recorder: Recorder):
        lines = [
            chunk_line(tool_call={"index": 0, "id": "call_1", "function": {"name": "f"}}),
            data_line({"type": "ping"}),
            chunk_line(tool_call={"index": 0, "function": {"arguments": "{}"}}),
            data_line({"type": "ping"}),
            chunk_line(finish_reason="tool_calls"),
        ]
        await _run(lines, recorder)
        assert len(recorder.calls) == 4
        call = recorder.calls[-1][0].choices[0].message.tool_calls[0]
        assert call.function.arguments == "{}"


class TestErrors:
    async def test_malformed_json_single_terminal_error(self, recorder: Recorder):
        lines = [chunk_line(content="ok"), "data: {not json", chunk_line(content="never")]
        _, stream = await _run(lines, recorder)

        assert len(recorder.calls) == 2
        payload, done, err = recorder.calls[1]
        assert done is True
        assert isinstance(err, StreamDecodeError)
        assert err.data == "{not json"
        assert payload == ChatCompletion()
        assert stream.closed

    async def test_garbled_terminator_is_decoded_not_terminated(self, recorder: Recorder):
        await _run(['data: "[DONE]"'], recorder)
        assert len(recorder.calls) == 1
        assert isinstance(recorder.calls[0][2], StreamDecodeError)

    async def test_read_error_delivers_transport_error(self, recorder: Recorder):
        _, stream = await _run(
            [chunk_line(content="partial")], recorder,
            error=httpx.ReadError("connection reset"),
        )
        assert [c[1] for c in recorder.calls] == [False, True]
        payload, _, err = recorder.calls[-1]
        assert isinstance(err, StreamTransportError)
        assert "connection reset" in str(err)
        assert payload == ChatCompletion()
        assert stream.closed


class TestCancellation:
    async def test_cancel_before_first_line(self, recorder: Recorder):
        cancel = asyncio.Event()
        cancel.set()
        _, stream = await _run(
            [chunk_line(content="x"), "data: [DONE]"], recorder, cancel_event=cancel,
        )
        assert len(recorder.calls) == 1
        payload, done, err = recorder.calls[0]
        assert done is True
        assert isinstance(err, StreamCancelledError)
        assert payload == ChatCompletion()
        assert stream.closed

    async def test_cancel_between_lines(self):
        cancel = asyncio.Event()
        calls = []

        def on_chunk(payload, done, error):
            calls.append((done, error))
            cancel.set()

        resp, stream = make_response(
            [chunk_line(content="a"), chunk_line(content="b"), "data: [DONE]"],
        )
        await ChatStreamSession(resp, on_chunk, cancel).run()
        assert len(calls) == 2
        assert calls[0] == (False, None)
        assert calls[1][0] is True
        assert isinstance(calls[1][1], StreamCancelledError)
        assert stream.closed

    async def test_task_cancellation_delivers_terminal(self, recorder: Recorder):
        gate = asyncio.Event()
        resp, stream = make_response(
            [chunk_line(content="a"), chunk_line(content="b")], gate=gate,
        )
        task = asyncio.create_task(ChatStreamSession(resp, recorder).run())
        while not recorder.calls:
            await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(recorder.terminal_calls) == 1
        assert isinstance(recorder.calls[-1][2], StreamCancelledError)
        assert stream.closed
