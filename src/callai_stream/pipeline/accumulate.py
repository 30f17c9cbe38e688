"""
Accumulators for stateful stream processing.

Reassembles tool call arguments split across streaming chunks:
- Chunk 1: {"index": 0, "id": "call_1", "name": "get_weather", "arguments": '{"city":'}
- Chunk 2: {"index": 0, "arguments": ' "Tokyo"'}
- Chunk 3: {"index": 0, "arguments": '}'}
- Done(finish_reason="tool_calls")

produces ToolStart, three ToolArguments and one ToolComplete carrying
'{"city": "Tokyo"}'.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from callai_stream.pipeline.base import Stage
from callai_stream.telemetry import get_logger
from callai_stream.types.events import (
    Done,
    ToolArguments,
    ToolCallDelta,
    ToolComplete,
    ToolEvent,
    ToolStart,
)

logger = get_logger("callai_stream.pipeline.accumulate")

TOOL_CALLS_FINISH_REASON = "tool_calls"


def _placeholder_id(index: int) -> str:
    return f"tool-{index}"


@dataclass
class ToolCallAccumulation:
    """Running state of one tool call.

    Attributes:
        index: Call index within the response
        call_id: Provider call id, or ``tool-{index}`` when none was sent
        function_name: Function name, once known
        arguments_buffer: Argument fragments concatenated so far
        complete: Whether ToolComplete has been emitted
    """

    index: int
    call_id: str
    function_name: str | None = None
    arguments_buffer: str = ""
    complete: bool = False

    def parse_arguments(self) -> dict[str, Any] | None:
        """Parse the buffered arguments as a JSON object.

        Returns:
            The parsed object, or None if the buffer is not valid JSON
        """
        if not self.arguments_buffer:
            return {}
        try:
            parsed = json.loads(self.arguments_buffer)
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, dict) else None


class ToolCallAccumulator(Stage["ToolCallDelta | Done", ToolEvent]):
    """Reassembles streamed tool calls.

    Consumes ``ToolCallDelta`` and ``Done`` events; anything else is
    ignored. Completion happens on ``Done(finish_reason="tool_calls")`` or
    at ``finalize()``, whichever comes first, and exactly once per index.
    """

    def __init__(self) -> None:
        super().__init__()
        self._reset()

    def _reset(self) -> None:
        self._calls: dict[int, ToolCallAccumulation] = {}

    @property
    def calls(self) -> list[ToolCallAccumulation]:
        """Every call seen so far, in first-seen order."""
        return list(self._calls.values())

    def get(self, index: int) -> ToolCallAccumulation | None:
        """Get the accumulation for an index."""
        return self._calls.get(index)

    def _feed(self, item: ToolCallDelta | Done) -> list[ToolEvent]:
        if isinstance(item, Done):
            if item.finish_reason == TOOL_CALLS_FINISH_REASON:
                return self._complete_all()
            return []
        if not isinstance(item, ToolCallDelta):
            return []

        events: list[ToolEvent] = []
        call = self._calls.get(item.index)

        if call is None:
            call = ToolCallAccumulation(
                index=item.index,
                call_id=item.call_id or _placeholder_id(item.index),
                function_name=item.function_name,
            )
            self._calls[item.index] = call
            events.append(
                ToolStart(
                    index=call.index,
                    call_id=call.call_id,
                    function_name=call.function_name,
                )
            )
        elif call.complete:
            logger.debug(
                "Dropping fragment for completed tool call",
                index=item.index,
                call_id=call.call_id,
            )
            return []
        else:
            if item.function_name and not call.function_name:
                call.function_name = item.function_name
            if item.call_id and call.call_id == _placeholder_id(call.index):
                call.call_id = item.call_id

        if item.arguments_fragment:
            call.arguments_buffer += item.arguments_fragment
            events.append(
                ToolArguments(
                    index=call.index,
                    call_id=call.call_id,
                    fragment=item.arguments_fragment,
                )
            )
        return events

    def _finalize(self) -> list[ToolEvent]:
        return self._complete_all()

    def _complete_all(self) -> list[ToolEvent]:
        events: list[ToolEvent] = []
        for call in self._calls.values():
            if call.complete:
                continue
            call.complete = True
            if call.parse_arguments() is None:
                logger.debug(
                    "Tool call arguments are not a JSON object",
                    index=call.index,
                    call_id=call.call_id,
                )
            events.append(
                ToolComplete(
                    index=call.index,
                    call_id=call.call_id,
                    function_name=call.function_name,
                    arguments=call.arguments_buffer,
                )
            )
        return events
