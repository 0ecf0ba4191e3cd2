"""Re-indentation of code collected from a `<script>` block."""

from __future__ import annotations

from collections.abc import Sequence

from fubelt.classify import starts_with_closer, statement_indent_change


def format_script(lines: Sequence[str], base_indent: int, *, indent_unit: str = "\t") -> str:
    """Re-indent script lines, offsetting every non-blank line by `base_indent`.

    Uses its own level counter starting at 0: dedent before emitting a line
    that starts with a closer, then apply the statement indent change. Blank
    lines come out empty.
    """

    out: list[str] = []
    level = 0
    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            out.append("")
            continue

        if starts_with_closer(trimmed):
            level = max(0, level - 1)

        out.append(indent_unit * (base_indent + level) + trimmed)
        level = max(0, level + statement_indent_change(trimmed))

    return "\n".join(out)
