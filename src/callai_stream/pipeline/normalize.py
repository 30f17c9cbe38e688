"""
Chat-delta normalizer: converts provider payloads into delta events.

Each payload is classified once into a ``PayloadShape`` and handled by the
branch for that shape. Within one payload, events come out as:

    Meta -> ContentDelta / ToolCallDelta -> Image -> Usage -> Done

``Meta``, ``Usage`` and ``Done`` are emitted at most once per stream.
"""

from __future__ import annotations

import copy
import json
import re
from enum import Enum
from typing import Any

from pydantic import ValidationError

from callai_stream.pipeline.base import Stage
from callai_stream.telemetry import get_logger
from callai_stream.types.events import (
    ContentDelta,
    DeltaEvent,
    Done,
    Image,
    Meta,
    StreamError,
    ToolCallDelta,
    Usage,
)
from callai_stream.types.records import SSEPayload

logger = get_logger("callai_stream.pipeline.normalize")

_DATA_URL_RE = re.compile(r"^data:image/[^;]+;base64,(.+)$", re.DOTALL)


class PayloadShape(str, Enum):
    """Closed set of payload layouts the normalizer understands."""

    CHAT_DELTA = "chat_delta"
    LEGACY_TEXT = "legacy_text"
    ANTHROPIC_BLOCK_DELTA = "anthropic_block_delta"
    IMAGE_DATA = "image_data"
    ERROR = "error"
    OTHER = "other"


def classify_payload(document: Any) -> PayloadShape:
    """Decide which layout a payload uses.

    Args:
        document: Parsed JSON payload

    Returns:
        The payload's shape
    """
    if not isinstance(document, dict):
        return PayloadShape.OTHER
    if document.get("error"):
        return PayloadShape.ERROR
    if document.get("type") == "content_block_delta":
        return PayloadShape.ANTHROPIC_BLOCK_DELTA

    choice = _first_choice(document)
    if choice is not None:
        if "delta" not in choice and isinstance(choice.get("text"), str):
            return PayloadShape.LEGACY_TEXT
        return PayloadShape.CHAT_DELTA

    if isinstance(document.get("data"), list):
        return PayloadShape.IMAGE_DATA
    return PayloadShape.OTHER


def to_delta_shape(document: Any) -> Any:
    """Relabel ``choices[].message`` as ``delta`` in a non-streaming response.

    The input is not modified.

    Args:
        document: Parsed non-streaming response body

    Returns:
        A deep copy whose choices carry ``delta`` instead of ``message``
    """
    result = copy.deepcopy(document)
    if not isinstance(result, dict):
        return result
    choices = result.get("choices")
    if isinstance(choices, list):
        for choice in choices:
            if isinstance(choice, dict) and "message" in choice and "delta" not in choice:
                choice["delta"] = choice.pop("message")
    return result


def _first_choice(document: dict[str, Any]) -> dict[str, Any] | None:
    choices = document.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return None


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def _as_name(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return value if isinstance(value, str) and value else None


class ChatDeltaNormalizer(Stage[SSEPayload, DeltaEvent]):
    """Maps parsed SSE payloads to normalized delta events.

    Example:
        >>> normalizer = ChatDeltaNormalizer()
        >>> normalizer.feed(SSEPayload.of(0, {"choices": [{"delta": {"content": "Hi"}}]}))
        [ContentDelta(type='content.delta', text='Hi')]
    """

    def __init__(self) -> None:
        super().__init__()
        self._reset()

    def _reset(self) -> None:
        self._meta_emitted = False
        self._usage_emitted = False
        self._done_emitted = False

    def _feed(self, item: SSEPayload) -> list[DeltaEvent]:
        try:
            return self._normalize(item)
        except ValidationError as e:
            logger.debug(
                "Dropping payload with unexpected field types",
                ordinal=item.ordinal,
                error=str(e),
            )
            return []

    def _normalize(self, item: SSEPayload) -> list[DeltaEvent]:
        document = item.json_data
        shape = classify_payload(document)

        if shape is PayloadShape.ERROR:
            return [StreamError(error=document["error"])]
        if shape is PayloadShape.OTHER and not isinstance(document, dict):
            logger.debug("Ignoring non-object payload", ordinal=item.ordinal)
            return []

        events: list[DeltaEvent] = []
        self._meta(document, events)

        if shape is PayloadShape.CHAT_DELTA:
            choice = _first_choice(document) or {}
            delta = choice.get("delta")
            if isinstance(delta, dict):
                self._chat_content(delta, events)
                self._delta_images(delta, events)
        elif shape is PayloadShape.LEGACY_TEXT:
            text = (_first_choice(document) or {}).get("text")
            if text:
                events.append(ContentDelta(text=text))
        elif shape is PayloadShape.ANTHROPIC_BLOCK_DELTA:
            self._block_delta(document, events)
        elif shape is PayloadShape.IMAGE_DATA:
            self._data_images(document["data"], events)

        self._usage(document, events)
        self._done(document, events)
        return events

    def _finalize(self) -> list[DeltaEvent]:
        return []

    def _meta(self, document: dict[str, Any], events: list[DeltaEvent]) -> None:
        if self._meta_emitted:
            return
        response_id = document.get("id")
        if not response_id or not isinstance(response_id, str):
            return
        self._meta_emitted = True
        events.append(
            Meta(
                id=response_id,
                provider=str(document.get("provider") or ""),
                model=str(document.get("model") or ""),
                created=_as_int(document.get("created")),
                fingerprint=str(document.get("system_fingerprint") or ""),
            )
        )

    def _chat_content(self, delta: dict[str, Any], events: list[DeltaEvent]) -> None:
        content = delta.get("content")
        tool_calls = delta.get("tool_calls")
        function_call = delta.get("function_call")

        if isinstance(content, str) and content:
            events.append(ContentDelta(text=content))
        elif isinstance(tool_calls, list) and tool_calls:
            for position, entry in enumerate(tool_calls):
                if not isinstance(entry, dict):
                    continue
                function = entry.get("function")
                if not isinstance(function, dict):
                    function = {}
                events.append(
                    ToolCallDelta(
                        index=_as_int(entry.get("index", position)),
                        call_id=_as_name(entry.get("id")),
                        function_name=_as_name(function.get("name")),
                        arguments_fragment=_as_text(function.get("arguments")),
                    )
                )
        elif isinstance(function_call, dict):
            events.append(
                ToolCallDelta(
                    index=0,
                    function_name=_as_name(function_call.get("name")),
                    arguments_fragment=_as_text(function_call.get("arguments")),
                )
            )
        elif isinstance(content, list):
            self._content_parts(content, events)

    def _content_parts(self, parts: list[Any], events: list[DeltaEvent]) -> None:
        texts: list[str] = []
        tool_uses = 0
        for part in parts:
            if not isinstance(part, dict):
                continue
            if part.get("type") == "tool_use":
                events.append(
                    ToolCallDelta(
                        index=_as_int(part.get("index", tool_uses)),
                        call_id=_as_name(part.get("id")),
                        function_name=_as_name(part.get("name")),
                        arguments_fragment=json.dumps(part.get("input", {})),
                    )
                )
                tool_uses += 1
            elif part.get("type") == "text" and isinstance(part.get("text"), str):
                texts.append(part["text"])

        if not tool_uses and texts:
            text = "".join(texts)
            if text:
                events.append(ContentDelta(text=text))

    def _block_delta(self, document: dict[str, Any], events: list[DeltaEvent]) -> None:
        delta = document.get("delta")
        if not isinstance(delta, dict):
            return
        text = delta.get("text")
        partial = delta.get("partial_json")
        if delta.get("type") == "text_delta" and isinstance(text, str) and text:
            events.append(ContentDelta(text=text))
        elif delta.get("type") == "input_json_delta" and isinstance(partial, str) and partial:
            events.append(
                ToolCallDelta(
                    index=_as_int(document.get("index", 0)),
                    arguments_fragment=partial,
                )
            )

    def _delta_images(self, delta: dict[str, Any], events: list[DeltaEvent]) -> None:
        images = delta.get("images")
        if not isinstance(images, list):
            return
        for position, item in enumerate(images):
            if not isinstance(item, dict) or item.get("type") != "image_url":
                continue
            image_url = item.get("image_url")
            url = image_url.get("url") if isinstance(image_url, dict) else image_url
            if not isinstance(url, str) or not url:
                continue
            index = _as_int(item.get("index", position))
            match = _DATA_URL_RE.match(url)
            if match:
                events.append(Image(index=index, base64=match.group(1)))
            else:
                events.append(Image(index=index, url=url))

    def _data_images(self, data: list[Any], events: list[DeltaEvent]) -> None:
        for position, item in enumerate(data):
            if not isinstance(item, dict):
                continue
            if isinstance(item.get("b64_json"), str) and item["b64_json"]:
                events.append(Image(index=position, base64=item["b64_json"]))
            elif isinstance(item.get("url"), str) and item["url"]:
                events.append(Image(index=position, url=item["url"]))

    def _usage(self, document: dict[str, Any], events: list[DeltaEvent]) -> None:
        usage = document.get("usage")
        if self._usage_emitted or not isinstance(usage, dict):
            return
        self._usage_emitted = True
        prompt = _as_int(usage.get("prompt_tokens"))
        completion = _as_int(usage.get("completion_tokens"))
        total = usage.get("total_tokens")
        cost = usage.get("cost")
        events.append(
            Usage(
                prompt_tokens=prompt,
                completion_tokens=completion,
                total_tokens=_as_int(total) if total is not None else prompt + completion,
                cost=float(cost) if isinstance(cost, (int, float)) else None,
            )
        )

    def _done(self, document: dict[str, Any], events: list[DeltaEvent]) -> None:
        if self._done_emitted:
            return
        choice = _first_choice(document)
        reason = choice.get("finish_reason") if choice else None
        if reason:
            self._done_emitted = True
            events.append(Done(finish_reason=str(reason)))
