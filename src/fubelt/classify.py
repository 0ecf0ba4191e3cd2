"""Line classification for the Fubelt formatter.

There is no parser behind the formatter: every non-blank line outside a
`<script>`/`<style>` block is put into exactly one `LineKind` by a fixed,
ordered set of predicates. A line can satisfy several predicates at once
(a statement that also looks like markup once JSX context is on), so the
order of `_RULES` decides the outcome.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

# Statement-leading heuristic for embedded script code.
STATEMENT_RE = re.compile(
    r"^(import |export |const |let |var |function |class |return\s*\(|}\s*\)"
    r"|[a-zA-Z_$][\w$]*\s*[=({]|\}\s*;)",
    re.ASCII,
)

# `<tag ...>text</tag>` on one line.
SINGLE_LINE_ELEMENT_RE = re.compile(r"<[^/>][^>]*>.*</[^>]+>")

# `foo({` / `defMeta( {` at end of line: a call opening an object literal.
OBJECT_LITERAL_OPEN_RE = re.compile(r"\w+\s*\(\s*\{$", re.ASCII)

OPENERS = "{[("
CLOSERS = "}])"
CONTINUATION_SUFFIXES = ("},", "],", "),")


class LineKind(Enum):
    STATEMENT = "statement"
    SINGLE_LINE_ELEMENT = "single_line_element"
    TAG_CLOSE = "tag_close"
    SELF_CLOSING = "self_closing"
    TAG_OPEN = "tag_open"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class LineClass:
    kind: LineKind
    # True when the line itself is tag-like and switches JSX context on.
    sets_jsx_context: bool


def is_tag_open_line(trimmed: str) -> bool:
    return (
        trimmed.startswith("<")
        and not trimmed.startswith("<script>")
        and not trimmed.startswith("<style>")
    )


def is_tag_close_line(trimmed: str) -> bool:
    return (
        trimmed.startswith("</")
        and not trimmed.startswith("</script>")
        and not trimmed.startswith("</style>")
    )


def is_statement_line(trimmed: str) -> bool:
    return STATEMENT_RE.match(trimmed) is not None


def is_single_line_element(trimmed: str) -> bool:
    return SINGLE_LINE_ELEMENT_RE.search(trimmed) is not None


def is_self_closing(trimmed: str) -> bool:
    return trimmed.endswith("/>")


def starts_with_closer(trimmed: str, closers: str = CLOSERS) -> bool:
    return bool(trimmed) and trimmed[0] in closers


def net_bracket_delta(trimmed: str) -> int:
    """Count of `{[(` minus count of `}])` in the line."""

    opens = sum(trimmed.count(ch) for ch in OPENERS)
    closes = sum(trimmed.count(ch) for ch in CLOSERS)
    return opens - closes


def statement_indent_change(trimmed: str) -> int:
    """Indent change applied after emitting a statement line.

    The raw bracket delta is overridden in two cases: a call opening an object
    literal (`foo({`) nests exactly one level, and a line ending in `},`,
    `],` or `),` is a continuation that leaves the level alone.
    """

    change = net_bracket_delta(trimmed)
    if OBJECT_LITERAL_OPEN_RE.search(trimmed):
        change = 1
    if trimmed.endswith(CONTINUATION_SUFFIXES):
        change = 0
    return change


_Rule = Callable[[str, bool], bool]

# Evaluated top to bottom; the first match wins.
_RULES: tuple[tuple[LineKind, _Rule], ...] = (
    (LineKind.STATEMENT, lambda t, jsx: is_statement_line(t) and not jsx),
    (
        LineKind.SINGLE_LINE_ELEMENT,
        lambda t, jsx: is_single_line_element(t) and not t.startswith("</"),
    ),
    (LineKind.TAG_CLOSE, lambda t, jsx: is_tag_close_line(t)),
    (LineKind.SELF_CLOSING, lambda t, jsx: is_self_closing(t)),
    (
        LineKind.TAG_OPEN,
        lambda t, jsx: is_tag_open_line(t) and t.endswith(">") and not t.startswith("</"),
    ),
)


def classify_line(trimmed: str, *, jsx_context: bool) -> LineClass:
    """Classify a trimmed, non-blank markup-mode line.

    `jsx_context` is the flag as it stood before this line; a tag-like line
    turns it on before the rules are evaluated.
    """

    sets_jsx = is_tag_open_line(trimmed) or is_tag_close_line(trimmed)
    jsx = jsx_context or sets_jsx
    for kind, rule in _RULES:
        if rule(trimmed, jsx):
            return LineClass(kind=kind, sets_jsx_context=sets_jsx)
    return LineClass(kind=LineKind.FALLBACK, sets_jsx_context=sets_jsx)
