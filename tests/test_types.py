"""Tests for wire types and the APIError decoder."""

import json

from genai_client.errors import APIError
from genai_client.types import (
    ChatCompletion,
    ChatMessage,
    GeneratedImages,
    ResponseStreamEvent,
    ToolCall,
)


class TestChatTypes:
    def test_chunk_from_dict(self):
        chunk = ChatCompletion.from_dict({
            "id": "c1",
            "model": "m",
            "choices": [{
                "index": 0,
                "delta": {
                    "tool_calls": [{
                        "index": 1,
                        "id": "call_9",
                        "type": "function",
                        "function": {"name": "f", "arguments": "{}"},
                    }],
                },
                "finish_reason": None,
            }],
        })
        tc = chunk.choices[0].delta.tool_calls[0]
        assert tc.index == 1
        assert tc.id == "call_9"
        assert tc.function.name == "f"
        assert chunk.choices[0].finish_reason == ""
        assert chunk.type is None
        assert chunk.usage is None

    def test_ping_type(self):
        assert ChatCompletion.from_dict({"type": "ping"}).type == "ping"

    def test_content_text_from_parts(self):
        msg = ChatMessage.from_dict({
            "role": "user",
            "content": [
                {"type": "text", "text": "What is "},
                {"type": "image_url", "image_url": {"url": "https://x/y.png"}},
                {"type": "text", "text": "this?"},
            ],
        })
        assert msg.content_text() == "What is this?"

    def test_message_to_dict_drops_unset(self):
        assert ChatMessage.tool("call_1", "42").to_dict() == {
            "role": "tool", "content": "42", "tool_call_id": "call_1",
        }
        msg = ChatMessage.assistant(tool_calls=[ToolCall(id="c", index=0)])
        data = msg.to_dict()
        assert "content" not in data
        assert data["tool_calls"][0]["id"] == "c"

    def test_parsed_arguments(self):
        tc = ToolCall()
        assert tc.parsed_arguments() == {}
        tc.function.arguments = '{"a": [1, 2]}'
        assert tc.parsed_arguments() == {"a": [1, 2]}
        tc.function.arguments = '{"a": '
        assert tc.parsed_arguments() == {}

    def test_non_string_arguments_serialized(self):
        tc = ToolCall.from_dict({"function": {"name": "f", "arguments": {"x": 1}}})
        assert json.loads(tc.function.arguments) == {"x": 1}


class TestOtherTypes:
    def test_response_event(self):
        event = ResponseStreamEvent.from_dict({
            "type": "response.output_text.delta", "delta": "hi", "output_index": 0,
        })
        assert event.delta == "hi"
        assert event.output_index == 0
        assert event.response == {}

    def test_generated_images(self):
        images = GeneratedImages.from_dict({"created": 1, "data": [{"b64_json": "AAAA"}]})
        assert images.data[0].b64_json == "AAAA"
        assert images.data[0].url is None


class TestAPIError:
    def test_single_object_wrapper(self):
        body = json.dumps({"error": {"message": "nope", "type": "invalid_request_error",
                                     "code": "bad", "param": "model"}})
        err = APIError.from_response_body(body, 400)
        assert err.message == "nope"
        rendered = json.loads(str(err))
        assert rendered == {"type": "invalid_request_error", "message": "nope",
                            "code": "bad", "param": "model"}

    def test_array_wrapper(self):
        body = json.dumps([{"error": {"message": "quota exceeded", "code": 429}}])
        err = APIError.from_response_body(body, 429)
        assert err.message == "quota exceeded"
        assert err.code == 429
        assert err.status_code == 429

    def test_undecodable_body(self):
        err = APIError.from_response_body("not json", 500)
        assert err.message.startswith("failed to decode error body")
        assert err.body == "not json"

    def test_unexpected_shape(self):
        err = APIError.from_response_body('{"detail": "oops"}', 404)
        assert err.message.startswith("failed to decode error body")
