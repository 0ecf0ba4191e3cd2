"""Formatting documents on disk."""

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass
from pathlib import Path

from fubelt.document import Position, Range, TextDocument, apply_edits
from fubelt.errors import FubeltIOError
from fubelt.formatter import FormatOptions, format_document
from fubelt.providers import format_range_edits

logger = logging.getLogger("fubelt.files")


@dataclass(frozen=True, slots=True)
class FileResult:
    path: Path
    original: str
    formatted: str

    @property
    def changed(self) -> bool:
        return self.formatted != self.original

    def unified_diff(self) -> str:
        return "".join(
            difflib.unified_diff(
                self.original.splitlines(keepends=True),
                self.formatted.splitlines(keepends=True),
                fromfile=f"{self.path} (original)",
                tofile=f"{self.path} (formatted)",
            )
        )


def read_document(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise FubeltIOError(f"{path} is not valid UTF-8") from e
    except OSError as e:
        raise FubeltIOError(f"Failed reading {path}: {e.strerror or e}") from e


def write_document(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise FubeltIOError(f"Failed writing {path}: {e.strerror or e}") from e


def parse_line_span(span: str) -> tuple[int, int]:
    """Parse a 1-based inclusive `START:END` line span."""

    start_s, sep, end_s = span.partition(":")
    try:
        start = int(start_s)
        end = int(end_s) if sep else start
    except ValueError:
        raise ValueError(f"Invalid line span {span!r}; expected START:END.") from None
    if start < 1 or end < start:
        raise ValueError(f"Invalid line span {span!r}; need 1 <= START <= END.")
    return start, end


def format_text(
    text: str,
    options: FormatOptions | None = None,
    *,
    lines: tuple[int, int] | None = None,
) -> str:
    """Format `text`, or only the given 1-based inclusive line span of it."""

    if lines is None:
        return format_document(text, options=options)

    doc = TextDocument(text)
    start, end = lines
    span = Range(Position(start - 1, 0), Position(end, 0))
    return apply_edits(text, format_range_edits(doc, span, options))


def format_file(
    path: Path,
    options: FormatOptions | None = None,
    *,
    write: bool = True,
    lines: tuple[int, int] | None = None,
) -> FileResult:
    """Format one document; write it back only when it changed and `write` is set."""

    original = read_document(path)
    formatted = format_text(original, options, lines=lines)
    result = FileResult(path=path, original=original, formatted=formatted)
    if result.changed and write:
        write_document(path, formatted)
        logger.debug("reformatted %s", path)
    else:
        logger.debug("%s: %s", path, "would change" if result.changed else "unchanged")
    return result
