"""
Server-Sent Events decoder.

Parses complete lines of the SSE format:
```
: OPENROUTER PROCESSING

data: {"choices": [{"delta": {"content": "Hi"}}]}

data: [DONE]
```
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from callai_stream.pipeline.base import Stage
from callai_stream.telemetry import get_logger
from callai_stream.types.records import LineRecord, SSEPayload

if TYPE_CHECKING:
    from callai_stream.types.records import SplitRecord

logger = get_logger("callai_stream.pipeline.decode")


class SSEDecoder(Stage["SplitRecord", SSEPayload]):
    """Server-Sent Events decoder.

    Attributes:
        prefix: Data line prefix (default: "data:")
        done_signal: End of stream signal (default: "[DONE]")
    """

    def __init__(self, prefix: str = "data:", done_signal: str = "[DONE]") -> None:
        """Initialize SSE decoder.

        Args:
            prefix: Data line prefix to strip
            done_signal: Signal indicating end of stream
        """
        super().__init__()
        self.prefix = prefix
        self.done_signal = done_signal
        self._reset()

    def _reset(self) -> None:
        self._done = False
        self._payload_count = 0
        self._error_count = 0

    @property
    def done(self) -> bool:
        """Whether the done signal has been seen."""
        return self._done

    @property
    def payload_count(self) -> int:
        """Number of payloads parsed so far."""
        return self._payload_count

    @property
    def error_count(self) -> int:
        """Number of data lines dropped as malformed JSON."""
        return self._error_count

    def _feed(self, item: SplitRecord) -> list[SSEPayload]:
        # Partial lines and the end-of-stream flush are never decoded
        if not isinstance(item, LineRecord) or not item.complete or self._done:
            return []

        data = self._data(item.text)
        if data is None:
            return []

        if data.strip() == self.done_signal:
            self._done = True
            return []

        if not data.strip():
            return []

        try:
            value: Any = json.loads(data)
        except json.JSONDecodeError as e:
            self._error_count += 1
            logger.debug(
                "Dropping malformed SSE payload",
                line_number=item.line_number,
                error=str(e),
                preview=data[:80],
            )
            return []

        payload = SSEPayload.of(self._payload_count, value)
        self._payload_count += 1
        return [payload]

    def _finalize(self) -> list[SSEPayload]:
        return []

    def _data(self, line: str) -> str | None:
        """Strip the data prefix and one optional space; None for other lines."""
        if not line or line.startswith(":"):
            return None
        if not line.startswith(self.prefix):
            # event:, id:, retry: and anything else
            return None
        data = line[len(self.prefix) :]
        if data.startswith(" "):
            data = data[1:]
        return data
