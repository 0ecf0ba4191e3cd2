"""MCP server for Fubelt: formatting and the close-tag assist as MCP tools.

The server uses FastMCP (optional dependency) for the transport layer.
Core tool functions are plain Python and can be tested without FastMCP installed.
"""

from __future__ import annotations

import io
import json
import logging
from contextlib import redirect_stdout
from pathlib import Path

import fubelt.cli
from fubelt.document import Position, Range, TextDocument, apply_edits
from fubelt.errors import FubeltConfigError
from fubelt.formatter import FormatOptions, format_document
from fubelt.providers import format_range_edits, on_type_edits
from fubelt.tags import open_tags_before

logger = logging.getLogger("fubelt.mcp")

# ---------------------------------------------------------------------------
# Core tool functions (no FastMCP dependency)
# ---------------------------------------------------------------------------


def _options(indent_style: str, indent_size: int) -> FormatOptions:
    if indent_style == "tab":
        return FormatOptions()
    if indent_style == "space":
        if indent_size < 1:
            raise FubeltConfigError("indent_size must be >= 1.")
        return FormatOptions.spaces(indent_size)
    raise FubeltConfigError(f"Unsupported indent_style: {indent_style!r}")


def _error(command: str, e: BaseException) -> str:
    return json.dumps({"command": command, "ok": False, "error": str(e)})


def _run_cli_json(argv: list[str]) -> str:
    """Run a CLI command with --json and capture its stdout JSON output.

    If the command produces no stdout, synthesise an error envelope so callers
    always get valid JSON.
    """
    cmd_name = argv[0] if argv else "unknown"
    buf = io.StringIO()
    with redirect_stdout(buf):
        fubelt.cli.main(argv)
    output = buf.getvalue().strip()
    if not output:
        return json.dumps({"command": cmd_name, "ok": False, "error": "command produced no output"})

    try:
        json.loads(output)
    except (json.JSONDecodeError, ValueError):
        return json.dumps({"command": cmd_name, "ok": False, "error": output[:500]})
    return output


def tool_format(*, text: str, indent_style: str = "tab", indent_size: int = 4) -> str:
    """Format a whole document and return the result."""
    try:
        options = _options(indent_style, indent_size)
    except FubeltConfigError as e:
        return _error("format", e)
    formatted = format_document(text, options=options)
    return json.dumps(
        {"command": "format", "ok": True, "changed": formatted != text, "formatted": formatted}
    )


def tool_format_range(
    *,
    text: str,
    start_line: int,
    start_character: int,
    end_line: int,
    end_character: int,
    indent_style: str = "tab",
    indent_size: int = 4,
) -> str:
    """Format only a range of a document (0-based positions) and return the whole text."""
    try:
        options = _options(indent_style, indent_size)
    except FubeltConfigError as e:
        return _error("format_range", e)
    doc = TextDocument(text)
    span = Range(Position(start_line, start_character), Position(end_line, end_character))
    edits = format_range_edits(doc, span, options)
    formatted = apply_edits(text, edits)
    return json.dumps(
        {
            "command": "format_range",
            "ok": True,
            "changed": bool(edits),
            "formatted": formatted,
        }
    )


def tool_open_tags(*, text: str, offset: int | None = None) -> str:
    """Return the tags still open at `offset` (defaults to end of text)."""
    at = len(text) if offset is None else offset
    return json.dumps(
        {"command": "open_tags", "ok": True, "offset": at, "tags": open_tags_before(text, at)}
    )


def tool_on_type(*, text: str, line: int, character: int, ch: str) -> str:
    """Close-tag assist edits for a character just typed at (line, character)."""
    doc = TextDocument(text)
    try:
        edits = on_type_edits(doc, Position(line, character), ch)
    except (IndexError, ValueError) as e:
        return _error("on_type", e)
    return json.dumps(
        {
            "command": "on_type",
            "ok": True,
            "edits": [
                {
                    "start": [e.range.start.line, e.range.start.character],
                    "end": [e.range.end.line, e.range.end.character],
                    "new_text": e.new_text,
                }
                for e in edits
            ],
        }
    )


def tool_format_files(
    *,
    root: str | None = None,
    paths: list[str] | None = None,
    check: bool = False,
) -> str:
    """Format documents on disk through the CLI and return its JSON result."""
    argv = ["format", "--json"]
    if root:
        argv += ["--root", root]
    if check:
        argv.append("--check")
    argv += list(paths or [])
    return _run_cli_json(argv)


# ---------------------------------------------------------------------------
# FastMCP server factory
# ---------------------------------------------------------------------------


def create_mcp_server():
    """Create and return a FastMCP server with fubelt tools registered.

    Raises ImportError if fastmcp is not installed.
    """
    from fastmcp import FastMCP

    mcp = FastMCP("fubelt", instructions="Fubelt document formatter")

    @mcp.tool()
    def fubelt_format(text: str, indent_style: str = "tab", indent_size: int = 4) -> str:
        """Re-indent a Fubelt document.

        Returns JSON with the formatted text and whether it changed.
        """
        return tool_format(text=text, indent_style=indent_style, indent_size=indent_size)

    @mcp.tool()
    def fubelt_format_range(
        text: str,
        start_line: int,
        start_character: int,
        end_line: int,
        end_character: int,
        indent_style: str = "tab",
        indent_size: int = 4,
    ) -> str:
        """Re-indent only part of a Fubelt document (0-based line/character positions).

        Text outside the range is returned untouched.
        """
        return tool_format_range(
            text=text,
            start_line=start_line,
            start_character=start_character,
            end_line=end_line,
            end_character=end_character,
            indent_style=indent_style,
            indent_size=indent_size,
        )

    @mcp.tool()
    def fubelt_open_tags(text: str, offset: int | None = None) -> str:
        """List tags still open at an offset, outermost first."""
        return tool_open_tags(text=text, offset=offset)

    @mcp.tool()
    def fubelt_on_type(text: str, line: int, character: int, ch: str) -> str:
        """Return close-tag assist edits for a just-typed `>` or `/`."""
        return tool_on_type(text=text, line=line, character=character, ch=ch)

    @mcp.tool()
    def fubelt_format_files(
        root: str | None = None,
        paths: list[str] | None = None,
        check: bool = False,
    ) -> str:
        """Format Fubelt documents on disk.

        Use check=True to only report which documents would change.
        Returns JSON with changed/unchanged/failed path lists.
        """
        return tool_format_files(root=root, paths=paths, check=check)

    return mcp


def run_server(*, root: str | None = None) -> None:
    """Entry point: create and run the MCP server (stdio transport).

    If *root* is provided, changes the working directory to that path so
    that file tools resolve relative to the given project root.
    """
    import os

    if root:
        os.chdir(Path(root).resolve())
    logger.debug("starting MCP server in %s", Path.cwd())
    mcp = create_mcp_server()
    mcp.run()
