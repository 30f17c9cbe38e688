"""Tests for types module."""

import pytest
from pydantic import BaseModel, TypeAdapter, ValidationError

from callai_stream.types import (
    ChatRequest,
    CodeStart,
    ContentDelta,
    DeltaEvent,
    Done,
    Message,
    MessageRole,
    OutputSchema,
    SchemaMode,
    SegmentEvent,
    SSEPayload,
    ToolComplete,
    ToolEvent,
)
from callai_stream.types.request import DEFAULT_MODEL


class TestMessage:
    """Tests for Message class."""

    def test_factories(self) -> None:
        """Test role factories."""
        assert Message.system("s").role == MessageRole.SYSTEM
        assert Message.user("u").role == MessageRole.USER
        assert Message.assistant("a").role == MessageRole.ASSISTANT

    def test_payload_omits_none(self) -> None:
        """Test wire format."""
        assert Message.user("Hi").to_payload() == {"role": "user", "content": "Hi"}

    def test_tool_result(self) -> None:
        """Test tool result messages carry the call id."""
        payload = Message.tool_result("call_1", '{"ok": true}').to_payload()
        assert payload == {"role": "tool", "content": '{"ok": true}', "tool_call_id": "call_1"}

    def test_multipart_content(self) -> None:
        """Test list content passes through."""
        parts = [{"type": "text", "text": "look"}, {"type": "image_url", "image_url": {"url": "https://x"}}]
        assert Message.user(parts).to_payload()["content"] == parts


class TestChatRequest:
    """Tests for ChatRequest."""

    def test_from_prompt(self) -> None:
        """Test a prompt becomes one user message."""
        request = ChatRequest.from_prompt("Write a haiku")
        assert request.model == DEFAULT_MODEL
        assert request.stream
        assert request.messages == [Message.user("Write a haiku")]

    def test_payload(self) -> None:
        """Test the request body."""
        request = ChatRequest.from_prompt(
            "Hi", model="openai/gpt-4o", max_tokens=100, extra={"tools": [{"type": "function"}], "model": "ignored"}
        )
        body = request.to_payload()
        assert body["model"] == "openai/gpt-4o"
        assert body["max_tokens"] == 100
        assert body["stream"] is True
        assert body["tools"] == [{"type": "function"}]
        assert body["messages"] == [{"role": "user", "content": "Hi"}]

    def test_api_key_not_in_payload(self) -> None:
        """Test the credential never lands in the body or repr."""
        request = ChatRequest.from_prompt("Hi", api_key="sk-secret")
        assert "sk-secret" not in str(request.to_payload())
        assert "sk-secret" not in repr(request)

    def test_copies(self) -> None:
        """Test with_model and with_api_key leave the original intact."""
        request = ChatRequest.from_prompt("Hi", model="a")
        assert request.with_model("b").model == "b"
        assert request.with_api_key("k").api_key == "k"
        assert request.model == "a"
        assert request.api_key is None

    def test_frozen(self) -> None:
        """Test requests are immutable."""
        request = ChatRequest.from_prompt("Hi")
        with pytest.raises(ValidationError):
            request.model = "other"


class TestEvents:
    """Tests for event models."""

    def test_discriminated_unions(self) -> None:
        """Test each family validates from its type tag."""
        assert TypeAdapter(DeltaEvent).validate_python({"type": "done", "finish_reason": "stop"}) == Done(
            finish_reason="stop"
        )
        segment = TypeAdapter(SegmentEvent).validate_python(
            {"type": "code.start", "seq": 1, "block_id": "block-1", "language": "py"}
        )
        assert isinstance(segment, CodeStart)
        assert segment.fence == "```\n"
        tool = TypeAdapter(ToolEvent).validate_python(
            {"type": "tool.complete", "index": 0, "call_id": "c", "arguments": "{}"}
        )
        assert isinstance(tool, ToolComplete)

    def test_events_frozen(self) -> None:
        """Test events cannot be mutated after emission."""
        with pytest.raises(ValidationError):
            ContentDelta(text="a").text = "b"

    def test_event_json_dump(self) -> None:
        """Test events serialize with their tag."""
        assert ContentDelta(text="hi").model_dump() == {"type": "content.delta", "text": "hi"}


class TestSSEPayload:
    """Tests for SSEPayload."""

    def test_of(self) -> None:
        """Test construction from a parsed value."""
        payload = SSEPayload.of(3, {"a": 1})
        assert payload.ordinal == 3
        assert payload.json_data == {"a": 1}


class TestOutputSchema:
    """Tests for structured-output schemas."""

    PROPERTIES = {"title": {"type": "string"}, "year": {"type": "number"}}

    def test_json_schema_mode(self) -> None:
        """Test non-Claude models get a response_format."""
        schema = OutputSchema(name="book", properties=self.PROPERTIES)
        body = ChatRequest.from_prompt("Recommend", model="openai/gpt-4o", output_schema=schema).to_payload()
        assert body["response_format"] == {
            "type": "json_schema",
            "json_schema": {
                "name": "book",
                "strict": True,
                "schema": {
                    "type": "object",
                    "properties": self.PROPERTIES,
                    "required": ["title", "year"],
                    "additionalProperties": False,
                },
            },
        }
        assert "tools" not in body

    def test_tool_mode_for_claude(self) -> None:
        """Test Claude models get a forced function tool."""
        schema = OutputSchema(name="book", properties=self.PROPERTIES, required=["title"])
        body = ChatRequest.from_prompt(
            "Recommend", model="anthropic/claude-3.5-sonnet", output_schema=schema
        ).to_payload()
        assert body["tool_choice"] == {"type": "function", "function": {"name": "book"}}
        (tool,) = body["tools"]
        assert tool["function"]["name"] == "book"
        assert tool["function"]["parameters"]["required"] == ["title"]
        assert "response_format" not in body

    def test_explicit_mode_wins(self) -> None:
        """Test an explicit mode ignores the model name."""
        schema = OutputSchema(properties=self.PROPERTIES, mode=SchemaMode.TOOL)
        assert schema.resolve_mode("openai/gpt-4o") is SchemaMode.TOOL
        assert "tools" in schema.to_payload("openai/gpt-4o")

    def test_extra_does_not_override_schema(self) -> None:
        """Test passthrough options cannot replace schema fields."""
        schema = OutputSchema(properties=self.PROPERTIES)
        request = ChatRequest.from_prompt(
            "Hi", output_schema=schema, extra={"response_format": {"type": "text"}, "seed": 1}
        )
        body = request.to_payload()
        assert body["response_format"]["type"] == "json_schema"
        assert body["seed"] == 1

    def test_schema_follows_fallback_model(self) -> None:
        """Test the wire form is recomputed for the model actually sent."""
        schema = OutputSchema(properties=self.PROPERTIES)
        request = ChatRequest.from_prompt("Hi", model="anthropic/claude-3-haiku", output_schema=schema)
        assert "tools" in request.to_payload()
        assert "response_format" in request.with_model("openrouter/auto").to_payload()

    def test_from_pydantic(self) -> None:
        """Test schemas can be taken from a pydantic model."""

        class Book(BaseModel):
            title: str
            year: int | None = None

        schema = OutputSchema.from_pydantic(Book)
        assert schema.name == "Book"
        assert set(schema.properties) == {"title", "year"}
        assert schema.to_json_schema()["required"] == ["title"]
