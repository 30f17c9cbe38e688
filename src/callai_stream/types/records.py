"""
Records produced by the first two pipeline stages.

- LineRecord: one (possibly partial) line from the line splitter
- BlockOpen / BlockContent / BlockClose: brace-delimited regions
- SSEPayload: one parsed ``data:`` payload from the event-stream decoder
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class LineRecord(BaseModel):
    """A line of stream text.

    A record with ``complete=False`` carries the part of the line seen so
    far. A later record with the same ``line_number`` and ``complete=True``
    carries the whole line. ``final=True`` marks the end-of-stream flush of
    a line that never got its newline.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["line"] = "line"
    line_number: int = Field(description="Zero-based line number, stable across chunks")
    text: str = Field(description="Line text without the trailing newline")
    complete: bool = Field(description="Whether the terminating newline was seen")
    final: bool = Field(default=False, description="End-of-stream flush of a partial line")


class BlockOpen(BaseModel):
    """Opening brace of a top-level ``{ ... }`` region."""

    model_config = ConfigDict(frozen=True)

    type: Literal["block.open"] = "block.open"
    block: int = Field(description="Zero-based block number")


class BlockContent(BaseModel):
    """Content between the outer braces of a region.

    Inner braces are part of ``content``; only the outer pair delimits.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["block.content"] = "block.content"
    block: int = Field(description="Block number")
    seq: int = Field(description="Sequence number within the block")
    content: str = Field(description="Content text")
    position: Literal["first", "middle", "last"] = Field(
        description="Where this piece sits within the block"
    )


class BlockClose(BaseModel):
    """Closing brace of a top-level region."""

    model_config = ConfigDict(frozen=True)

    type: Literal["block.close"] = "block.close"
    block: int = Field(description="Block number")
    terminated: bool = Field(
        default=True, description="False when closed by end of stream instead of '}'"
    )


BraceRecord = Union[BlockOpen, BlockContent, BlockClose]
SplitRecord = Union[LineRecord, BlockOpen, BlockContent, BlockClose]


class SSEPayload(BaseModel):
    """A successfully parsed ``data:`` payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["sse.payload"] = "sse.payload"
    ordinal: int = Field(description="Zero-based count of parsed payloads")
    json_data: Any = Field(alias="json", description="Parsed JSON value")

    @classmethod
    def of(cls, ordinal: int, value: Any) -> SSEPayload:
        """Create a payload (``json`` is a reserved name on BaseModel)."""
        return cls(ordinal=ordinal, json=value)
