"""Tests for the code-fence detector."""

import random

from callai_stream.pipeline import CodeFenceDetector, FenceState
from callai_stream.types import (
    CodeEnd,
    CodeFragment,
    CodeStart,
    ContentDelta,
    TextFragment,
)


def rebuild(events: list) -> str:
    """Concatenate every piece of markup and text back into the input."""
    parts = []
    for e in events:
        if isinstance(e, TextFragment):
            parts.append(e.text)
        elif isinstance(e, (CodeStart, CodeEnd)):
            parts.append(e.fence)
        elif isinstance(e, CodeFragment):
            parts.append(e.text)
    return "".join(parts)


def segments(events: list) -> list[tuple[str, str]]:
    """Merge adjacent fragments of the same kind."""
    merged: list[tuple[str, str]] = []
    for e in events:
        if isinstance(e, TextFragment):
            kind, text = "text", e.text
        elif isinstance(e, CodeFragment):
            kind, text = "code", e.text
        elif isinstance(e, CodeStart):
            kind, text = "start", e.language or ""
        else:
            kind, text = "end", ""
        if merged and merged[-1][0] == kind and kind in ("text", "code"):
            merged[-1] = (kind, merged[-1][1] + text)
        else:
            merged.append((kind, text))
    return merged


class TestCodeFenceDetector:
    """Tests for fence detection."""

    def test_scenario(self) -> None:
        """Test prose followed by a fenced jsx block."""
        detector = CodeFenceDetector()
        events = detector.run(["Here is code:\n", "```jsx\n", "const x = 1;", "\n```\n"])

        assert events == [
            TextFragment(seq=0, text="Here is code:\n"),
            CodeStart(seq=1, block_id="block-1", language="jsx", fence="```jsx\n"),
            CodeFragment(seq=2, block_id="block-1", text="const x = 1;"),
            CodeEnd(seq=3, block_id="block-1", language="jsx", fence="\n```\n"),
        ]

    def test_accepts_content_deltas(self) -> None:
        """Test ContentDelta input is read through its text."""
        events = CodeFenceDetector().feed(ContentDelta(text="plain"))
        assert events == [TextFragment(seq=0, text="plain")]

    def test_no_language(self) -> None:
        """Test a bare fence has no language."""
        events = CodeFenceDetector().run(["```\nx\n```\n"])
        start = next(e for e in events if isinstance(e, CodeStart))
        assert start.language is None

    def test_language_stripped(self) -> None:
        """Test whitespace around the info string is removed."""
        events = CodeFenceDetector().run(["```  python \nx\n```"])
        start = next(e for e in events if isinstance(e, CodeStart))
        assert start.language == "python"

    def test_fence_split_across_deltas(self) -> None:
        """Test backticks arriving one per delta."""
        events = CodeFenceDetector().run(["a`", "`", "`py", "\nprint()", "\n`", "``", "\nb"])
        assert segments(events) == [
            ("text", "a"),
            ("start", "py"),
            ("code", "print()"),
            ("end", ""),
            ("text", "b"),
        ]

    def test_inline_backticks_are_text(self) -> None:
        """Test fewer than three backticks stay in the text."""
        events = CodeFenceDetector().run(["use `x` or ``y``"])
        assert segments(events) == [("text", "use `x` or ``y``")]

    def test_backticks_inside_code(self) -> None:
        """Test backticks that are not a closing fence stay in the code."""
        text = "```js\nconst s = `a`;\n``not a fence\n```\n"
        events = CodeFenceDetector().run([text])
        assert segments(events) == [
            ("start", "js"),
            ("code", "const s = `a`;\n``not a fence"),
            ("end", ""),
        ]

    def test_close_followed_by_space(self) -> None:
        """Test a space after the closing fence starts the next text run."""
        events = CodeFenceDetector().run(["```\ncode\n``` after"])
        end = next(e for e in events if isinstance(e, CodeEnd))
        assert end.fence == "\n```"
        assert segments(events)[-1] == ("text", " after")

    def test_longer_closing_fence(self) -> None:
        """Test extra backticks extend the closing fence."""
        events = CodeFenceDetector().run(["```\ncode\n````\n"])
        end = next(e for e in events if isinstance(e, CodeEnd))
        assert end.fence == "\n````\n"

    def test_indented_closing_fence(self) -> None:
        """Test a closing fence indented inside a list item closes the block."""
        text = "1. Step\n   ```js\n   x()\n   ```\nAfter text\n"
        events = CodeFenceDetector().run([text])
        assert segments(events) == [
            ("text", "1. Step\n   "),
            ("start", "js"),
            ("code", "   x()"),
            ("end", ""),
            ("text", "After text\n"),
        ]
        end = next(e for e in events if isinstance(e, CodeEnd))
        assert end.fence == "\n   ```\n"
        assert not end.synthetic
        assert rebuild(events) == text

    def test_inline_closing_fence(self) -> None:
        """Test three backticks at the end of a code line close the block."""
        text = "```\nx = 1```\nAfter\n"
        events = CodeFenceDetector().run([text])
        assert segments(events) == [
            ("start", ""),
            ("code", "x = 1"),
            ("end", ""),
            ("text", "After\n"),
        ]
        end = next(e for e in events if isinstance(e, CodeEnd))
        assert end.fence == "```\n"
        assert not end.synthetic

    def test_indented_close_split_across_deltas(self) -> None:
        """Test an indented close split mid-indent gives the same segments."""
        text = "```py\nif x:\n    y()\n  ```\nz"
        whole = segments(CodeFenceDetector().run([text]))
        split = segments(CodeFenceDetector().run(["```py\nif x:\n ", "   y()\n ", " `", "``", "\nz"]))
        assert split == whole
        assert whole[-2:] == [("end", ""), ("text", "z")]

    def test_indent_without_fence_stays_code(self) -> None:
        """Test leading whitespace is released into the code when no fence follows."""
        events = CodeFenceDetector().run(["```\na\n\t  b\n```\n"])
        assert segments(events)[1] == ("code", "a\n\t  b")

    def test_finalize_without_open_block(self) -> None:
        """Test finalize after a closed block emits no extra CodeEnd."""
        detector = CodeFenceDetector()
        detector.feed("```\nx\n```\n")
        assert detector.finalize() == []
        assert CodeFenceDetector().finalize() == []

    def test_close_at_end_of_stream(self) -> None:
        """Test a fence pending at finalize is treated as closing."""
        detector = CodeFenceDetector()
        events = detector.feed("```\ncode\n```")
        assert not any(isinstance(e, CodeEnd) for e in events)
        assert detector.state is FenceState.MAYBE_CLOSE

        events = detector.finalize()
        assert events == [CodeEnd(seq=2, block_id="block-1", fence="\n```")]

    def test_unterminated_block_closed_synthetically(self) -> None:
        """Test an open block gets a synthetic close at finalize."""
        detector = CodeFenceDetector()
        detector.feed("```python\nprint(1)\n")
        events = detector.finalize()

        assert events[-1] == CodeEnd(seq=3, block_id="block-1", language="python", synthetic=True)
        assert events[:-1] == [CodeFragment(seq=2, block_id="block-1", text="\n")]

    def test_unfinished_opening_fence_is_text(self) -> None:
        """Test an info string without its newline is flushed as text."""
        detector = CodeFenceDetector()
        detector.feed("see ```py")
        assert detector.finalize() == [TextFragment(seq=1, text="```py")]

    def test_block_ids_increase(self) -> None:
        """Test each block gets the next id."""
        events = CodeFenceDetector().run(["```a\n1\n```\ntext\n```b\n2\n```\n"])
        starts = [e for e in events if isinstance(e, CodeStart)]
        assert [(s.block_id, s.language) for s in starts] == [("block-1", "a"), ("block-2", "b")]

    def test_seq_strictly_increasing(self) -> None:
        """Test seq numbers across all events."""
        events = CodeFenceDetector().run(["x\n```\ny\n```\nz"])
        assert [e.seq for e in events] == list(range(len(events)))

    def test_pending_flushed_per_delta(self) -> None:
        """Test text is emitted at the end of every delta."""
        detector = CodeFenceDetector()
        assert detector.feed("abc") == [TextFragment(seq=0, text="abc")]
        assert detector.feed("``") == []
        assert detector.feed("d") == [TextFragment(seq=1, text="``d")]

    def test_round_trip_every_split(self) -> None:
        """Test fences and fragments rebuild the input at every split point."""
        text = "Intro `x`\n```tsx\nconst a = `b`;\n\n```\nmid ``` tail\n````\nopen"
        expected = segments(CodeFenceDetector().run([text]))
        for i in range(len(text) + 1):
            events = CodeFenceDetector().run([text[:i], text[i:]])
            assert rebuild(events) == text
            assert segments(events) == expected

    def test_round_trip_random_chunks(self) -> None:
        """Test round trip with random chunking."""
        rng = random.Random(1234)
        text = "a\n```py\nfor i in x:\n    print(i)\n```\nb ```\n``` c\n```"
        for _ in range(200):
            cuts = sorted(rng.sample(range(1, len(text)), rng.randint(1, 8)))
            chunks = [text[a:b] for a, b in zip([0, *cuts], [*cuts, len(text)])]
            events = CodeFenceDetector().run(chunks)
            assert rebuild(events) == text
