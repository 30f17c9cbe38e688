#!/usr/bin/env python3
"""
Streaming response example.

Prints prose as it arrives and collects fenced code blocks separately.

Usage:
    export OPENROUTER_API_KEY="your-api-key"
    python examples/streaming.py
"""

import asyncio

from callai_stream import ChatClient, ChatRequest, Message
from callai_stream.types import CodeEnd, CodeFragment, CodeStart, TextFragment, Usage


async def main() -> None:
    """Run streaming example."""
    request = ChatRequest.from_prompt(
        [
            Message.system("You are a helpful React developer."),
            Message.user("Write a tiny counter component and explain it in two sentences."),
        ],
        model="anthropic/claude-3.5-sonnet",
        max_tokens=800,
    )

    async with ChatClient() as client:
        print("Streaming response:\n")
        print("-" * 50)

        code: dict[str, list[str]] = {}
        async for event in client.stream(request):
            if isinstance(event, TextFragment):
                print(event.text, end="", flush=True)
            elif isinstance(event, CodeStart):
                code[event.block_id] = []
                print(f"[code block {event.block_id}: {event.language or 'plain'}]", flush=True)
            elif isinstance(event, CodeFragment):
                code[event.block_id].append(event.text)
            elif isinstance(event, CodeEnd):
                lines = "".join(code[event.block_id]).count("\n") + 1
                print(f"[{lines} lines collected]", flush=True)
            elif isinstance(event, Usage):
                print(f"\n\n[tokens: {event.prompt_tokens} in, {event.completion_tokens} out]")

        print("-" * 50)
        for block_id, parts in code.items():
            print(f"\n{block_id}:\n{''.join(parts)}")

        for attempt in client.last_attempts:
            print(f"attempt {attempt.number}: {attempt.model} -> {attempt.state.value}")


if __name__ == "__main__":
    asyncio.run(main())
