"""
Line splitter: the first pipeline stage.

Splits raw stream chunks into lines, or alternatively into top-level
``{ ... }`` regions, regardless of where the chunk boundaries fall.

Lines mode:
```
feed('data: {"a"')    -> [LineRecord(0, 'data: {"a"', complete=False)]
feed(': 1}\\n\\n')      -> [LineRecord(0, 'data: {"a": 1}', complete=True),
                          LineRecord(1, '', complete=True)]
```
"""

from __future__ import annotations

import codecs
from enum import Enum

from callai_stream.errors import PipelineError
from callai_stream.pipeline.base import Stage
from callai_stream.types.records import (
    BlockClose,
    BlockContent,
    BlockOpen,
    LineRecord,
    SplitRecord,
)


class SplitMode(str, Enum):
    """What delimits a record."""

    LINES = "lines"
    BRACES = "braces"


class LineSplitter(Stage["str | bytes", SplitRecord]):
    """Incremental line (or brace-region) splitter.

    Bytes are decoded with an incremental decoder, so a multi-byte
    character split across two chunks decodes once, intact.

    Attributes:
        mode: Lines or brace regions
        emit_partial: Whether to emit ``complete=False`` records for the
            unterminated tail after each chunk (lines mode)
    """

    def __init__(
        self,
        mode: SplitMode = SplitMode.LINES,
        *,
        encoding: str = "utf-8",
        emit_partial: bool = True,
    ) -> None:
        super().__init__()
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise PipelineError(f"Unknown encoding: {encoding}", stage="lines") from e
        self.mode = SplitMode(mode)
        self.emit_partial = emit_partial
        self._encoding = encoding
        self._reset()

    def _reset(self) -> None:
        self._decoder = codecs.getincrementaldecoder(self._encoding)(errors="replace")
        self._residual = ""
        self._line_number = 0
        # Brace mode
        self._in_block = False
        self._depth = 0
        self._block = 0
        self._seq = 0

    @property
    def line_number(self) -> int:
        """Number of the line currently being assembled."""
        return self._line_number

    @property
    def residual(self) -> str:
        """Text received since the last delimiter."""
        return self._residual

    def _decode(self, chunk: str | bytes, final: bool = False) -> str:
        if isinstance(chunk, (bytes, bytearray, memoryview)):
            return self._decoder.decode(bytes(chunk), final)
        return chunk

    def _feed(self, item: str | bytes) -> list[SplitRecord]:
        text = self._decode(item)
        if not text:
            return []
        if self.mode is SplitMode.BRACES:
            return self._split_braces(text)
        return self._split_lines(text)

    def _finalize(self) -> list[SplitRecord]:
        records: list[SplitRecord] = []
        tail = self._decode(b"", final=True)

        if self.mode is SplitMode.BRACES:
            if tail:
                records.extend(self._split_braces(tail))
            if self._in_block:
                records.append(BlockClose(block=self._block, terminated=False))
                self._in_block = False
                self._block += 1
            return records

        if tail:
            records.extend(self._split_lines(tail, emit_partial=False))
        if self._residual:
            records.append(
                LineRecord(
                    line_number=self._line_number,
                    text=self._residual,
                    complete=False,
                    final=True,
                )
            )
            self._residual = ""
        return records

    def _split_lines(self, text: str, emit_partial: bool | None = None) -> list[SplitRecord]:
        records: list[SplitRecord] = []
        start = 0

        while True:
            eol = text.find("\n", start)
            if eol < 0:
                break
            if start == 0:
                line = self._residual + text[:eol]
                self._residual = ""
            else:
                line = text[start:eol]
            if line.endswith("\r"):
                line = line[:-1]
            records.append(
                LineRecord(line_number=self._line_number, text=line, complete=True)
            )
            self._line_number += 1
            start = eol + 1

        if start == 0:
            self._residual += text
        else:
            self._residual = text[start:]

        if emit_partial is None:
            emit_partial = self.emit_partial
        if emit_partial and self._residual and start < len(text):
            records.append(
                LineRecord(
                    line_number=self._line_number,
                    text=self._residual,
                    complete=False,
                )
            )
        return records

    def _split_braces(self, text: str) -> list[SplitRecord]:
        records: list[SplitRecord] = []
        pos = 0
        length = len(text)

        while pos < length:
            if not self._in_block:
                open_idx = text.find("{", pos)
                if open_idx < 0:
                    # Text between regions is not part of any record
                    break
                self._in_block = True
                self._depth = 0
                self._seq = 0
                records.append(BlockOpen(block=self._block))
                pos = open_idx + 1
                continue

            close_idx = self._find_matching_close(text, pos)
            if close_idx < 0:
                records.append(self._content(text[pos:], last=False))
                break

            records.append(self._content(text[pos:close_idx], last=True))
            records.append(BlockClose(block=self._block))
            self._in_block = False
            self._block += 1
            pos = close_idx + 1

        return [r for r in records if r is not None]

    def _find_matching_close(self, text: str, start: int) -> int:
        """Scan for the '}' closing the current region, tracking depth."""
        for i in range(start, len(text)):
            ch = text[i]
            if ch == "{":
                self._depth += 1
            elif ch == "}":
                if self._depth == 0:
                    return i
                self._depth -= 1
        return -1

    def _content(self, content: str, *, last: bool) -> BlockContent | None:
        if not content and not last:
            return None
        if last:
            position = "last"
        elif self._seq == 0:
            position = "first"
        else:
            position = "middle"
        record = BlockContent(
            block=self._block, seq=self._seq, content=content, position=position
        )
        self._seq += 1
        return record
