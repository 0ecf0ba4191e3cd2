"""Indentation-inference formatter for Fubelt documents.

A single pass over the lines of a document. Markup lines are placed with the
ordered classifier in `fubelt.classify`; lines inside `<script>` and
`<style>` blocks are collected verbatim and re-indented as a whole by the
script and style sub-formatters when the block closes.

The formatter is total: any string formats to some string. Malformed or
partial markup only costs indentation quality.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from fubelt.classify import LineKind, classify_line, starts_with_closer, statement_indent_change
from fubelt.script import format_script
from fubelt.style import format_style

logger = logging.getLogger("fubelt.format")

SCRIPT_OPEN = "<script>"
SCRIPT_CLOSE = "</script>"
STYLE_OPEN = "<style>"
STYLE_CLOSE = "</style>"
BOM = "\ufeff"


@dataclass(frozen=True, slots=True)
class FormatOptions:
    indent_unit: str = "\t"

    @classmethod
    def spaces(cls, size: int) -> FormatOptions:
        return cls(indent_unit=" " * size)


class Mode(Enum):
    NORMAL = "normal"
    IN_SCRIPT = "in_script"
    IN_STYLE = "in_style"


@dataclass(slots=True)
class FormatterState:
    """Transient state for one `format_document` call."""

    indent_unit: str = "\t"
    indent_level: int = 0
    mode: Mode = Mode.NORMAL
    jsx_context: bool = False
    script_lines: list[str] = field(default_factory=list)
    style_lines: list[str] = field(default_factory=list)
    script_start_indent: int = 0
    style_start_indent: int = 0
    output: list[str] = field(default_factory=list)

    def emit(self, trimmed: str) -> None:
        self.output.append(self.indent_unit * self.indent_level + trimmed)

    def dedent(self) -> None:
        self.indent_level = max(0, self.indent_level - 1)

    def shift(self, change: int) -> None:
        self.indent_level = max(0, self.indent_level + change)

    def emit_block(self, formatted: str) -> None:
        # Empty lines survive only if the block had a real blank-line gap.
        keep_blank = "\n\n" in formatted
        self.output.extend(line for line in formatted.split("\n") if line or keep_blank)


def format_document(text: str, *, options: FormatOptions | None = None) -> str:
    """Re-indent a whole Fubelt document (or any slice of one)."""

    opts = options or FormatOptions()
    state = FormatterState(indent_unit=opts.indent_unit)

    # `str.strip` keeps a byte-order mark, which would hide a leading tag.
    text = text.removeprefix(BOM)
    for raw in text.split("\n"):
        _format_line(state, raw.strip())

    return "\n".join(state.output)


def _format_line(state: FormatterState, trimmed: str) -> None:
    if not trimmed:
        if state.mode is Mode.IN_SCRIPT:
            state.script_lines.append("")
        elif state.mode is Mode.IN_STYLE:
            state.style_lines.append("")
        else:
            state.output.append("")
        return

    if trimmed == SCRIPT_OPEN:
        state.emit(trimmed)
        state.script_start_indent = state.indent_level
        state.indent_level += 1
        state.mode = Mode.IN_SCRIPT
        state.script_lines = []
        return

    if trimmed == SCRIPT_CLOSE:
        _close_block(state, trimmed, state.script_lines, state.script_start_indent, format_script)
        state.script_lines = []
        return

    if trimmed == STYLE_OPEN:
        state.emit(trimmed)
        state.style_start_indent = state.indent_level
        state.indent_level += 1
        state.mode = Mode.IN_STYLE
        state.style_lines = []
        return

    if trimmed == STYLE_CLOSE:
        _close_block(state, trimmed, state.style_lines, state.style_start_indent, format_style)
        state.style_lines = []
        return

    if state.mode is Mode.IN_SCRIPT:
        state.script_lines.append(trimmed)
        return

    if state.mode is Mode.IN_STYLE:
        state.style_lines.append(trimmed)
        return

    _format_markup_line(state, trimmed)


def _close_block(
    state: FormatterState,
    trimmed: str,
    lines: Sequence[str],
    start_indent: int,
    sub_formatter: Callable[..., str],
) -> None:
    formatted = sub_formatter(lines, start_indent + 1, indent_unit=state.indent_unit)
    logger.debug("closing %s: %d collected line(s) at indent %d", trimmed, len(lines), start_indent)
    state.emit_block(formatted)
    state.indent_level = start_indent
    state.emit(trimmed)
    state.mode = Mode.NORMAL


def _format_markup_line(state: FormatterState, trimmed: str) -> None:
    line_class = classify_line(trimmed, jsx_context=state.jsx_context)
    if line_class.sets_jsx_context:
        state.jsx_context = True

    kind = line_class.kind
    if kind is LineKind.STATEMENT:
        if starts_with_closer(trimmed):
            state.dedent()
        state.emit(trimmed)
        state.shift(statement_indent_change(trimmed))
    elif kind is LineKind.SINGLE_LINE_ELEMENT or kind is LineKind.SELF_CLOSING:
        state.emit(trimmed)
    elif kind is LineKind.TAG_CLOSE:
        state.dedent()
        state.emit(trimmed)
    elif kind is LineKind.TAG_OPEN:
        state.emit(trimmed)
        state.indent_level += 1
    else:
        if starts_with_closer(trimmed, "})"):
            state.dedent()
        state.emit(trimmed)
        if trimmed.endswith("(") or (trimmed.endswith("{") and "}" not in trimmed):
            state.indent_level += 1
