"""Editor-assist providers over the `Document` interface.

Thin adapters only: formatting delegates to `fubelt.formatter`, the close-tag
assist to `fubelt.tags`. Hosts translate the returned `TextEdit`s and
`CompletionItem`s into their own types.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from fubelt.document import Document, Position, Range, TextEdit
from fubelt.formatter import FormatOptions, format_document
from fubelt.tags import open_tags_before

# Numbers like `-1.5`, or runs of characters that are neither punctuation nor space.
WORD_RE = re.compile(r"(-?\d*\.\d\w*)|([^`~!@#%^&*()\-=+\[{\]}\\|;:'\",.<>/?\s]+)", re.ASCII)

# Opening tag closed at the very end of the line.
_OPENING_TAG_AT_EOL_RE = re.compile(r"<([a-zA-Z][\w-]*)[^>]*>$", re.ASCII)

TRIGGER_CHARACTERS = (">", "/", "\n")

_HOVERS = {
    "defMeta": "Define metadata for a Fubelt page component",
}


class CompletionKind(Enum):
    FUNCTION = "function"
    SNIPPET = "snippet"


@dataclass(frozen=True, slots=True)
class CompletionItem:
    label: str
    kind: CompletionKind
    insert_text: str
    documentation: str


def format_document_edits(doc: Document, options: FormatOptions | None = None) -> list[TextEdit]:
    """One full-document replace when formatting changes anything, else nothing."""

    text = doc.get_text()
    formatted = format_document(text, options=options)
    if formatted == text:
        return []
    full = Range(doc.position_at(0), doc.position_at(len(text)))
    return [TextEdit.replace(full, formatted)]


def format_range_edits(
    doc: Document, range: Range, options: FormatOptions | None = None
) -> list[TextEdit]:
    """Format only the text inside `range`; the edit never reaches outside it."""

    text = doc.get_text(range)
    formatted = format_document(text, options=options)
    if formatted == text:
        return []
    return [TextEdit.replace(range, formatted)]


def on_type_edits(doc: Document, position: Position, ch: str) -> list[TextEdit]:
    """Close-tag assist for a just-typed `>` or `/`."""

    if ch not in TRIGGER_CHARACTERS:
        raise ValueError(f"Not an on-type trigger character: {ch!r}")
    if ch == ">":
        return _close_tag_on_gt(doc, position)
    if ch == "/":
        return _complete_closing_tag(doc, position)
    return []


def _close_tag_on_gt(doc: Document, position: Position) -> list[TextEdit]:
    line = doc.line_at(position.line)
    match = _OPENING_TAG_AT_EOL_RE.search(line.text)
    if match is None or "</" in line.text:
        return []
    if line.text.strip().endswith("/>"):
        return []

    tag = match.group(1)
    closing = f"</{tag}>"
    if doc.get_text().find(closing, doc.offset_at(position)) != -1:
        return []

    next_line = position.line + 1
    if next_line >= doc.line_count or doc.line_at(next_line).text.strip():
        return []

    indent = " " * line.first_non_whitespace_character_index
    return [TextEdit.insert(Position(next_line, 0), indent + closing)]


def _complete_closing_tag(doc: Document, position: Position) -> list[TextEdit]:
    line = doc.line_at(position.line)
    before_slash = line.text[: max(0, position.character - 1)]
    if not before_slash.strip().endswith("<"):
        return []

    text = doc.get_text()
    tags = open_tags_before(text, doc.offset_at(position))
    if not tags:
        return []
    return [TextEdit.insert(position, f"{tags[-1]}>")]


def word_range_at(doc: Document, position: Position) -> Range | None:
    text = doc.line_at(position.line).text
    for match in WORD_RE.finditer(text):
        if match.start() <= position.character <= match.end():
            return Range(
                Position(position.line, match.start()),
                Position(position.line, match.end()),
            )
    return None


def hover(doc: Document, position: Position) -> str | None:
    word_range = word_range_at(doc, position)
    if word_range is None:
        return None
    return _HOVERS.get(doc.get_text(word_range))


def completion_items() -> list[CompletionItem]:
    return [
        CompletionItem(
            label="defMeta",
            kind=CompletionKind.FUNCTION,
            insert_text=(
                "defMeta({\n"
                '\tname: "${1:name}",\n'
                "\tdocument: {\n"
                '\t\ttitle: "${2:title}",\n'
                '\t\tdescription: "${3:description}",\n'
                '\t\tkeywords: "${4:keywords}"\n'
                "\t},\n"
                "\tpermissions: {\n"
                '\t\tintent: "${5:intent}",\n'
                "\t\tlevel: ${6:0}\n"
                "\t}\n"
                "})"
            ),
            documentation="Define metadata for a Fubelt page",
        ),
        CompletionItem(
            label="script",
            kind=CompletionKind.SNIPPET,
            insert_text="<script>\n\t$0\n</script>",
            documentation="Add a script block",
        ),
    ]
