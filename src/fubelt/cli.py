from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from fubelt import __version__
from fubelt.config import FubeltConfig
from fubelt.diagnostics import format_check_failures, format_error_with_hint, format_io_failures
from fubelt.errors import FubeltConfigError, FubeltDiscoveryError, FubeltIOError

logger = logging.getLogger("fubelt.cli")

EXIT_OK = 0
EXIT_CHECK_FAILED = 1
EXIT_CONFIG_OR_DISCOVERY = 2
EXIT_IO_ERROR = 3


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Project root (defaults to searching upward from cwd for fubelt.toml).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to fubelt.toml (defaults to <root>/fubelt.toml).",
    )
    _add_json_flag(p)


def _add_json_flag(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Emit a machine-readable JSON result on stdout.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fubelt")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr."
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    format_p = subparsers.add_parser("format", help="Re-indent Fubelt documents.")
    _add_common_flags(format_p)
    format_p.add_argument(
        "paths",
        nargs="*",
        help="Files or directories (defaults to paths.include from fubelt.toml).",
    )
    format_p.add_argument(
        "--check",
        action="store_true",
        help="Do not write; exit 1 if any document would change.",
    )
    format_p.add_argument(
        "--diff", action="store_true", help="Do not write; print a unified diff instead."
    )
    format_p.add_argument(
        "--stdin", action="store_true", help="Format stdin and write the result to stdout."
    )
    format_p.add_argument(
        "--lines",
        type=str,
        default=None,
        metavar="START:END",
        help="Only format this 1-based inclusive line span (single document only).",
    )

    tags_p = subparsers.add_parser("open-tags", help="List tags still open at a position.")
    _add_json_flag(tags_p)
    tags_p.add_argument("file", help="Document to scan.")
    tags_p.add_argument("--offset", type=int, default=None, help="Character offset.")
    tags_p.add_argument("--line", type=int, default=None, help="1-based line.")
    tags_p.add_argument("--column", type=int, default=1, help="1-based column (with --line).")

    watch_p = subparsers.add_parser("watch", help="Reformat documents whenever they change.")
    _add_common_flags(watch_p)
    watch_p.add_argument(
        "paths",
        nargs="*",
        help="Directories to watch (defaults to paths.include from fubelt.toml).",
    )

    mcp_p = subparsers.add_parser("mcp", help="Model Context Protocol server.")
    mcp_sub = mcp_p.add_subparsers(dest="mcp_command", required=True)
    serve_p = mcp_sub.add_parser("serve", help="Serve formatter tools over stdio.")
    serve_p.add_argument("--root", type=str, default=None, help="Project root.")
    serve_p.add_argument("--config", type=str, default=None, help="Path to fubelt.toml.")

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _is_json_mode(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "json_output", False))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_config(args: argparse.Namespace) -> tuple[Path, FubeltConfig]:
    """Resolve the project root and its configuration.

    Explicit `--config`/`--root` must point at something real; otherwise a
    project without `fubelt.toml` simply formats with the defaults.
    """
    from fubelt.config import CONFIG_FILENAME, default_config, find_project_root, load_config

    if args.config:
        config_path = Path(args.config).resolve()
        root = Path(args.root).resolve() if args.root else config_path.parent
        return root, load_config(root=root, config_path=config_path)

    if args.root:
        root = Path(args.root).resolve()
        if not root.is_dir():
            raise FubeltConfigError(f"Project root is not a directory: {root}")
        if (root / CONFIG_FILENAME).is_file():
            return root, load_config(root=root)
        return root, default_config()

    try:
        root = find_project_root(Path.cwd())
    except FubeltConfigError:
        logger.debug("no fubelt.toml found; using default configuration")
        return Path.cwd().resolve(), default_config()
    return root, load_config(root=root)


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _print_error(e: BaseException) -> None:
    _eprint(format_error_with_hint(e))


def _emit_json(payload: dict[str, object]) -> None:
    print(json.dumps(payload, indent=2))


def _error_result(args: argparse.Namespace, command: str, e: BaseException, code: int) -> int:
    if _is_json_mode(args):
        _emit_json({"command": command, "ok": False, "error": str(e)})
    else:
        _print_error(e)
    return code


def _target_roots(args: argparse.Namespace, root: Path, cfg: FubeltConfig) -> list[Path]:
    if args.paths:
        return [Path(p) for p in args.paths]
    return [root / inc for inc in cfg.paths.include]


def _format_stdin(
    args: argparse.Namespace, cfg: FubeltConfig, lines: tuple[int, int] | None
) -> int:
    from fubelt.files import format_text

    original = sys.stdin.read()
    formatted = format_text(original, cfg.format.to_options(), lines=lines)
    changed = formatted != original

    if _is_json_mode(args):
        _emit_json(
            {
                "command": "format",
                "ok": not (args.check and changed),
                "changed": changed,
                "formatted": formatted,
            }
        )
    elif not args.check:
        sys.stdout.write(formatted)

    if args.check and changed:
        return EXIT_CHECK_FAILED
    return EXIT_OK


def cmd_format(args: argparse.Namespace) -> int:
    try:
        root, cfg = _load_config(args)

        lines: tuple[int, int] | None = None
        if args.lines is not None:
            from fubelt.files import parse_line_span

            try:
                lines = parse_line_span(args.lines)
            except ValueError as e:
                raise FubeltConfigError(str(e)) from None

        if args.stdin:
            return _format_stdin(args, cfg, lines)

        from fubelt.discovery import discover_documents
        from fubelt.files import format_file

        documents = discover_documents(
            _target_roots(args, root, cfg),
            extensions=cfg.paths.extensions,
            exclude=cfg.paths.exclude,
        )
        if lines is not None and len(documents) != 1:
            raise FubeltConfigError("--lines requires exactly one document.")

        options = cfg.format.to_options()
        write = not (args.check or args.diff)

        changed: list[Path] = []
        unchanged: list[Path] = []
        failed: dict[Path, str] = {}
        for path in documents:
            try:
                result = format_file(path, options, write=write, lines=lines)
            except FubeltIOError as e:
                failed[path] = str(e)
                continue
            if not result.changed:
                unchanged.append(path)
                continue
            changed.append(path)
            if args.diff and not _is_json_mode(args):
                sys.stdout.write(result.unified_diff())

        check_failed = bool(args.check and changed)
        if _is_json_mode(args):
            _emit_json(
                {
                    "command": "format",
                    "ok": not failed and not check_failed,
                    "written": write,
                    "changed": [str(p) for p in changed],
                    "unchanged": [str(p) for p in unchanged],
                    "failed": {str(p): msg for p, msg in failed.items()},
                }
            )
        else:
            if failed:
                _eprint(format_io_failures(failed).rstrip())
            if check_failed:
                _eprint(format_check_failures(changed).rstrip())
            elif write and changed:
                _eprint(f"reformatted {len(changed)} of {len(documents)} document(s)")

        if failed:
            return EXIT_IO_ERROR
        if check_failed:
            return EXIT_CHECK_FAILED
        return EXIT_OK
    except (FubeltConfigError, FubeltDiscoveryError) as e:
        return _error_result(args, "format", e, EXIT_CONFIG_OR_DISCOVERY)
    except FubeltIOError as e:
        return _error_result(args, "format", e, EXIT_IO_ERROR)


def cmd_open_tags(args: argparse.Namespace) -> int:
    from fubelt.document import Position, TextDocument
    from fubelt.files import read_document
    from fubelt.tags import open_tags_before

    try:
        text = read_document(Path(args.file))
        doc = TextDocument(text)
        if args.offset is not None:
            offset = args.offset
        elif args.line is not None:
            offset = doc.offset_at(Position(args.line - 1, args.column - 1))
        else:
            offset = len(text)

        tags = open_tags_before(text, offset)
        if _is_json_mode(args):
            _emit_json({"command": "open-tags", "ok": True, "offset": offset, "tags": tags})
        else:
            for tag in tags:
                print(tag)
        return EXIT_OK
    except FubeltIOError as e:
        return _error_result(args, "open-tags", e, EXIT_IO_ERROR)


def cmd_watch(args: argparse.Namespace) -> int:
    from fubelt import watcher

    try:
        watcher.check_watchfiles_available()
    except ImportError as e:
        return _error_result(args, "watch", e, EXIT_CONFIG_OR_DISCOVERY)

    try:
        root, cfg = _load_config(args)
    except FubeltConfigError as e:
        return _error_result(args, "watch", e, EXIT_CONFIG_OR_DISCOVERY)

    roots = [p.resolve() for p in _target_roots(args, root, cfg)]
    missing = [p for p in roots if not p.exists()]
    if missing:
        e = FubeltDiscoveryError(f"No such file or directory: {missing[0]}")
        return _error_result(args, "watch", e, EXIT_CONFIG_OR_DISCOVERY)

    json_mode = _is_json_mode(args)

    def on_cycle_result(result: watcher.WatchCycleResult) -> None:
        if json_mode:
            print(json.dumps(watcher.format_watch_cycle_json(result)), flush=True)
        elif result.failed:
            _eprint(format_io_failures(result.failed).rstrip())

    _eprint(f"[watch] watching {', '.join(str(p) for p in roots)} (Ctrl-C to stop)")
    try:
        asyncio.run(
            watcher.run_watch_loop(
                changes_iter=watcher.make_watchfiles_iter(roots),
                run_cycle=watcher.build_cycle_runner(cfg.format.to_options()),
                on_event=_eprint,
                on_cycle_result=on_cycle_result,
                on_error=_print_error,
                roots=roots,
                extensions=cfg.paths.extensions,
                exclude=cfg.paths.exclude,
            )
        )
    except KeyboardInterrupt:
        _eprint("[watch] stopped")
    return EXIT_OK


def cmd_mcp(args: argparse.Namespace) -> int:
    try:
        root, cfg = _load_config(args)
        if not cfg.mcp.enabled:
            raise FubeltConfigError("The MCP server is disabled by mcp.enabled in fubelt.toml.")

        from fubelt.mcp_server import run_server

        run_server(root=str(root))
        return EXIT_OK
    except (FubeltConfigError, ImportError) as e:
        _print_error(e)
        return EXIT_CONFIG_OR_DISCOVERY


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_OR_DISCOVERY

    _configure_logging(bool(args.verbose))

    if args.command == "format":
        return cmd_format(args)
    if args.command == "open-tags":
        return cmd_open_tags(args)
    if args.command == "watch":
        return cmd_watch(args)
    if args.command == "mcp":
        return cmd_mcp(args)

    return EXIT_CONFIG_OR_DISCOVERY


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
