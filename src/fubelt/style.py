"""Re-indentation of rules collected from a `<style>` block."""

from __future__ import annotations

from collections.abc import Sequence


def format_style(lines: Sequence[str], base_indent: int, *, indent_unit: str = "\t") -> str:
    out: list[str] = []
    level = 0
    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            out.append("")
            continue

        if trimmed.startswith("}"):
            level = max(0, level - 1)

        out.append(indent_unit * (base_indent + level) + trimmed)

        # Presence only: `a { color: red; }` on one line does not nest.
        if "{" in trimmed and "}" not in trimmed:
            level += 1

    return "\n".join(out)
