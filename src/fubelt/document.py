"""Editor-neutral document model: positions, ranges, edits, and a text buffer.

The formatting providers only talk to the `Document` interface, so any host
(an editor bridge, the CLI, the MCP server) can adapt its own buffer type.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True, slots=True)
class Range:
    start: Position
    end: Position

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


@dataclass(frozen=True, slots=True)
class TextEdit:
    range: Range
    new_text: str

    @classmethod
    def replace(cls, range: Range, new_text: str) -> TextEdit:
        return cls(range=range, new_text=new_text)

    @classmethod
    def insert(cls, position: Position, new_text: str) -> TextEdit:
        return cls(range=Range(position, position), new_text=new_text)


@dataclass(frozen=True, slots=True)
class TextLine:
    line_number: int
    text: str
    first_non_whitespace_character_index: int

    @property
    def is_empty_or_whitespace(self) -> bool:
        return self.first_non_whitespace_character_index == len(self.text)


class Document(ABC):
    @abstractmethod
    def get_text(self, range: Range | None = None) -> str:
        """Return the whole text, or the text covered by `range`."""

    @abstractmethod
    def line_at(self, line: int) -> TextLine: ...

    @property
    @abstractmethod
    def line_count(self) -> int: ...

    @abstractmethod
    def position_at(self, offset: int) -> Position: ...

    @abstractmethod
    def offset_at(self, position: Position) -> int: ...


class TextDocument(Document):
    """In-memory `Document` over a string.

    Lines are split on "\\n"; a trailing "\\r" belongs to the line for offset
    purposes but is not part of `TextLine.text`. Out-of-range positions and
    offsets are clamped.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._lines = text.split("\n")
        self._starts: list[int] = []
        pos = 0
        for raw in self._lines:
            self._starts.append(pos)
            pos += len(raw) + 1

    def get_text(self, range: Range | None = None) -> str:
        if range is None:
            return self._text
        start = self.offset_at(range.start)
        end = self.offset_at(range.end)
        return self._text[start:end]

    def line_at(self, line: int) -> TextLine:
        if line < 0 or line >= len(self._lines):
            raise IndexError(f"line {line} out of range (0..{len(self._lines) - 1})")
        text = self._lines[line].rstrip("\r")
        stripped = text.lstrip()
        return TextLine(
            line_number=line,
            text=text,
            first_non_whitespace_character_index=len(text) - len(stripped),
        )

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def position_at(self, offset: int) -> Position:
        offset = min(max(0, offset), len(self._text))
        line = 0
        for i, start in enumerate(self._starts):
            if start > offset:
                break
            line = i
        return Position(line, offset - self._starts[line])

    def offset_at(self, position: Position) -> int:
        if position.line < 0:
            return 0
        if position.line >= len(self._lines):
            return len(self._text)
        raw = self._lines[position.line]
        return self._starts[position.line] + min(max(0, position.character), len(raw))

    @property
    def full_range(self) -> Range:
        return Range(self.position_at(0), self.position_at(len(self._text)))


def apply_edits(text: str, edits: Sequence[TextEdit]) -> str:
    """Apply non-overlapping edits to `text` and return the new text."""

    doc = TextDocument(text)
    spans = sorted(
        ((doc.offset_at(e.range.start), doc.offset_at(e.range.end), e.new_text) for e in edits),
        key=lambda s: (s[0], s[1]),
    )
    out: list[str] = []
    cursor = 0
    for start, end, new_text in spans:
        if start < cursor:
            raise ValueError("Overlapping text edits.")
        out.append(text[cursor:start])
        out.append(new_text)
        cursor = end
    out.append(text[cursor:])
    return "".join(out)
