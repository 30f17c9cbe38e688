#!/usr/bin/env python3
"""
Pipeline performance benchmarks.

Measures throughput and latency of each parsing stage and of the
assembled ChatStream.
"""

import asyncio
import json
import time
from typing import Any

from callai_stream.pipeline import (
    ChatDeltaNormalizer,
    ChatStream,
    CodeFenceDetector,
    LineSplitter,
    SSEDecoder,
    ToolCallAccumulator,
)
from callai_stream.types import ContentDelta, Done, ToolCallDelta


def generate_sse_chunks(count: int) -> list[bytes]:
    """Generate mock SSE chunks, with a code block every 50 tokens."""
    chunks = []
    for i in range(count):
        text = f"Token{i} "
        if i % 50 == 10:
            text = "\n```py\n"
        elif i % 50 == 20:
            text = "\n```\n"
        data = {"id": "gen-1", "choices": [{"delta": {"content": text}, "index": 0}]}
        chunks.append(f"data: {json.dumps(data)}\n\n".encode())
    chunks.append(b"data: [DONE]\n\n")
    return chunks


def _result(name: str, iterations: int, count: int, elapsed: float, unit: str) -> dict[str, Any]:
    return {
        "name": name,
        "iterations": iterations,
        unit: count,
        "elapsed_seconds": elapsed,
        "throughput": count / elapsed if count else 0,
        "latency_us": (elapsed / count) * 1_000_000 if count else 0,
    }


def benchmark_line_splitter(iterations: int = 1000) -> dict[str, Any]:
    """Benchmark line splitting over 7-byte chunks."""
    data = b"".join(generate_sse_chunks(iterations))
    pieces = [data[i : i + 7] for i in range(0, len(data), 7)]

    start = time.perf_counter()
    records = LineSplitter(emit_partial=False).run(pieces)
    elapsed = time.perf_counter() - start

    return _result("LineSplitter", iterations, len(records), elapsed, "records")


def benchmark_sse_decoder(iterations: int = 1000) -> dict[str, Any]:
    """Benchmark SSE decoder throughput."""
    records = LineSplitter().run(generate_sse_chunks(iterations))
    decoder = SSEDecoder()

    start = time.perf_counter()
    payloads = decoder.run(records)
    elapsed = time.perf_counter() - start

    return _result("SSEDecoder", iterations, len(payloads), elapsed, "payloads")


def benchmark_normalizer(iterations: int = 1000) -> dict[str, Any]:
    """Benchmark delta normalization."""
    payloads = SSEDecoder().run(LineSplitter().run(generate_sse_chunks(iterations)))

    start = time.perf_counter()
    deltas = ChatDeltaNormalizer().run(payloads)
    elapsed = time.perf_counter() - start

    return _result("ChatDeltaNormalizer", iterations, len(deltas), elapsed, "events")


def benchmark_fence_detector(iterations: int = 1000) -> dict[str, Any]:
    """Benchmark code-fence detection."""
    deltas = [
        ContentDelta(text="```js\n" if i % 40 == 0 else "x = 1;\n```\n" if i % 40 == 20 else f"word{i} ")
        for i in range(iterations)
    ]

    start = time.perf_counter()
    events = CodeFenceDetector().run(deltas)
    elapsed = time.perf_counter() - start

    return _result("CodeFenceDetector", iterations, len(events), elapsed, "events")


def benchmark_tool_accumulator(iterations: int = 1000) -> dict[str, Any]:
    """Benchmark tool argument reassembly."""
    items: list = [ToolCallDelta(index=0, call_id="call_1", function_name="save", arguments_fragment='{"items": [')]
    items.extend(ToolCallDelta(index=0, arguments_fragment=f"{i}, ") for i in range(iterations))
    items.append(ToolCallDelta(index=0, arguments_fragment="0]}"))
    items.append(Done(finish_reason="tool_calls"))

    start = time.perf_counter()
    events = ToolCallAccumulator().run(items)
    elapsed = time.perf_counter() - start

    return _result("ToolCallAccumulator", iterations, len(events), elapsed, "events")


async def benchmark_full_pipeline(iterations: int = 1000) -> dict[str, Any]:
    """Benchmark the assembled ChatStream in pull mode."""
    chunks = generate_sse_chunks(iterations)

    async def byte_stream():
        for chunk in chunks:
            yield chunk

    start = time.perf_counter()
    events = [event async for event in ChatStream().events(byte_stream())]
    elapsed = time.perf_counter() - start

    return _result("ChatStream", iterations, len(events), elapsed, "events")


async def run_benchmarks() -> None:
    """Run all benchmarks and print results."""
    print("=" * 60)
    print("Pipeline Benchmarks")
    print("=" * 60)
    print()

    results = [
        benchmark_line_splitter(),
        benchmark_sse_decoder(),
        benchmark_normalizer(),
        benchmark_fence_detector(),
        benchmark_tool_accumulator(),
        await benchmark_full_pipeline(),
    ]

    for result in results:
        print(f"{result['name']}:")
        print(f"  Iterations: {result['iterations']}")
        print(f"  Elapsed: {result['elapsed_seconds']:.4f}s")
        print(f"  Throughput: {result['throughput']:.0f} items/sec")
        print(f"  Latency: {result['latency_us']:.2f} µs/item")
        print()


if __name__ == "__main__":
    asyncio.run(run_benchmarks())
