"""Incremental assembly of streamed tool calls.

OpenAI-compatible providers send tool calls as a run of chunks: the first
fragment of a call carries its ``id`` and ``function.name``, the following
ones carry ``function.arguments`` text that must be concatenated.  Parallel
calls are told apart by ``index``; a change of index closes the call in
progress.
"""

from __future__ import annotations

import logging

from genai_client.types import ChatCompletion, ToolCall

_logger = logging.getLogger(__name__)

FINISH_TOOL_CALLS = "tool_calls"
FINISH_STOP = "stop"


class ToolCallAssembler:
    """Merge tool-call fragments from successive chunks into whole calls.

    Owned by a single stream session; not safe to share.
    """

    def __init__(self) -> None:
        self.tool_index = 0
        self.current = ToolCall(type="function", index=0)
        self.completed: list[ToolCall] = []

    def update(self, chunk: ChatCompletion) -> bool:
        """Feed one decoded chunk.

        Returns True when the chunk finishes the tool calls.  In that case
        the completed list has been attached to the chunk's first choice as
        ``message.tool_calls``.
        """
        if not chunk.choices:
            return False
        choice = chunk.choices[0]

        if choice.delta.tool_calls:
            # one fragment per frame
            self._apply(choice.delta.tool_calls[0])

        if self._finishes(choice.finish_reason):
            self.completed.append(self.current.snapshot())
            choice.message.tool_calls = list(self.completed)
            _logger.debug(
                "Tool calls finished (%s): %d call(s)",
                choice.finish_reason, len(self.completed),
            )
            return True
        return False

    def _apply(self, fragment: ToolCall) -> None:
        if fragment.index is not None and fragment.index != self.tool_index:
            self.completed.append(self.current.snapshot())
            self.tool_index = fragment.index
            self.current = ToolCall(type="function", index=fragment.index)

        if fragment.id:
            self.current.id = fragment.id

        if fragment.function.name:
            self.current.function.name = fragment.function.name
        elif fragment.function.arguments:
            self.current.function.arguments += fragment.function.arguments

    def _finishes(self, finish_reason: str) -> bool:
        if finish_reason == FINISH_TOOL_CALLS:
            return True
        # Some providers end a single-call stream with "stop" instead of
        # "tool_calls"; a call id already seen marks it as a tool call.
        return finish_reason == FINISH_STOP and bool(self.current.id)
