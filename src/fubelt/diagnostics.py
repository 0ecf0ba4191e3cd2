"""Error formatting and actionable hints for Fubelt CLI output.

Keep this module small and dependency-light: it is imported by the CLI layer
and only depends on the error hierarchy.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from fubelt.errors import FubeltConfigError, FubeltDiscoveryError, FubeltIOError


def format_check_failures(paths: Sequence[Path]) -> str:
    """Summarize the documents `fubelt format --check` would change."""
    if not paths:
        return ""
    lines = [f"{len(paths)} document(s) would be reformatted:\n"]
    for p in sorted(paths):
        lines.append(f"  {p}")
    return "\n".join(lines).rstrip() + "\n"


def format_io_failures(failed: dict[Path, str]) -> str:
    if not failed:
        return ""
    lines = [f"Failed to format {len(failed)} document(s):\n"]
    for path in sorted(failed):
        lines.append(f"  {path}:")
        lines.append(f"    - {failed[path]}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def format_hint(exc: BaseException) -> str | None:
    """Return an actionable hint for a known error, or None."""
    msg = str(exc)

    if isinstance(exc, FubeltConfigError):
        if "fubelt.toml" in msg and "find" in msg.lower():
            return "create a fubelt.toml with `version = 1` at the project root, or pass --config"
        if "indent_style" in msg:
            return 'use indent_style = "tab" or indent_style = "space"'
        return None

    if isinstance(exc, FubeltDiscoveryError):
        return "check the paths passed on the command line and paths.include in fubelt.toml"

    if isinstance(exc, FubeltIOError):
        if "UTF-8" in msg:
            return "Fubelt documents are read as UTF-8; re-save the file with that encoding"
        return None

    return None


def format_error_with_hint(exc: BaseException) -> str:
    """Format error message + optional hint for stderr output."""
    msg = (str(exc) or repr(exc)).strip()
    result = f"error: {msg}"
    hint = format_hint(exc)
    if hint:
        result += f"\nhint: {hint}"
    return result
