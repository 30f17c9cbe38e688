#!/usr/bin/env python3
"""
Tool calling (function calling) example.

Streams a response, watches tool-call arguments arrive, then answers each
completed call and asks for the final reply.

Usage:
    export OPENROUTER_API_KEY="your-api-key"
    python examples/tool_calling.py
"""

import asyncio
import json
from typing import Any

from callai_stream import ChatClient, ChatRequest, Message
from callai_stream.types import ToolArguments, ToolComplete, ToolStart


# Simulated tool implementation
def get_weather(location: str, unit: str = "celsius") -> dict[str, Any]:
    """Simulate getting weather data."""
    weather_data = {
        "Tokyo": {"temp": 22, "condition": "Sunny"},
        "London": {"temp": 15, "condition": "Cloudy"},
    }
    data = dict(weather_data.get(location, {"temp": 20, "condition": "Unknown"}))
    if unit == "fahrenheit":
        data["temp"] = data["temp"] * 9 / 5 + 32
    data["unit"] = unit
    return data


WEATHER_TOOL = {
    "type": "function",
    "function": {
        "name": "get_weather",
        "description": "Get the current weather for a city",
        "parameters": {
            "type": "object",
            "properties": {
                "location": {"type": "string"},
                "unit": {"type": "string", "enum": ["celsius", "fahrenheit"]},
            },
            "required": ["location"],
        },
    },
}


async def main() -> None:
    """Run tool calling example."""
    messages = [Message.user("What's the weather in Tokyo and London?")]
    request = ChatRequest.from_prompt(messages, model="openai/gpt-4o", extra={"tools": [WEATHER_TOOL]})

    async with ChatClient() as client:
        completed: list[ToolComplete] = []
        async for event in client.stream(request):
            if isinstance(event, ToolStart):
                print(f"\n[{event.call_id}] {event.function_name}(", end="")
            elif isinstance(event, ToolArguments):
                print(event.fragment, end="", flush=True)
            elif isinstance(event, ToolComplete):
                print(")")
                completed.append(event)

        if not completed:
            print("Model answered without calling tools.")
            return

        messages.append(
            Message(
                role="assistant",
                content=None,
                tool_calls=[
                    {
                        "id": call.call_id,
                        "type": "function",
                        "function": {"name": call.function_name, "arguments": call.arguments},
                    }
                    for call in completed
                ],
            )
        )
        for call in completed:
            arguments = json.loads(call.arguments or "{}")
            messages.append(Message.tool_result(call.call_id, json.dumps(get_weather(**arguments))))

        result = await client.complete(request.model_copy(update={"messages": messages}))
        print("\nFinal answer:\n" + result.text)


if __name__ == "__main__":
    asyncio.run(main())
