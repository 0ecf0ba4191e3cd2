"""Watch mode: reformat documents as they change."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fubelt.discovery import is_skipped
from fubelt.errors import FubeltIOError
from fubelt.formatter import FormatOptions

logger = logging.getLogger("fubelt.watch")


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A batch of relevant file changes."""

    changed_paths: frozenset[Path]
    timestamp: float


@dataclass(frozen=True, slots=True)
class WatchCycleResult:
    """Result of a single watch reformat cycle."""

    reformatted: frozenset[Path]
    failed: dict[Path, str]
    duration_s: float
    changed_paths: frozenset[Path]


def check_watchfiles_available() -> None:
    """Raise ImportError with a helpful message if watchfiles is not installed."""
    import importlib

    try:
        importlib.import_module("watchfiles")
    except ImportError:
        raise ImportError(
            "watchfiles is required for watch mode. Install it with: pip install fubelt[watch]"
        ) from None


def filter_document_files(
    changed_paths: frozenset[Path],
    *,
    roots: list[Path],
    extensions: list[str],
    exclude: list[str] | None = None,
) -> frozenset[Path]:
    """Filter changed paths to the documents `discover_documents` would pick up.

    A path that is itself a watched root only needs a matching suffix. Under a
    watched directory it must also clear the tooling-directory and `exclude`
    checks relative to that directory.
    """
    excluded = list(exclude or [])
    kept: set[Path] = set()
    for p in changed_paths:
        if p.suffix not in extensions:
            continue
        if p in roots:
            kept.add(p)
            continue
        for r in roots:
            if p.is_relative_to(r) and not is_skipped(p.relative_to(r), exclude=excluded):
                kept.add(p)
                break
    return frozenset(kept)


async def run_watch_loop(
    *,
    changes_iter: AsyncIterator[set[tuple[Any, str]]],
    run_cycle: Callable[[WatchEvent], WatchCycleResult],
    on_event: Callable[[str], None],
    on_cycle_result: Callable[[WatchCycleResult], None],
    on_error: Callable[[BaseException], None],
    roots: list[Path],
    extensions: list[str],
    exclude: list[str] | None = None,
) -> None:
    """Main watch loop. Consumes changes_iter, filters, and calls run_cycle."""
    async for raw_changes in changes_iter:
        paths = frozenset(Path(p) for _, p in raw_changes)
        relevant = filter_document_files(
            paths, roots=roots, extensions=extensions, exclude=exclude
        )
        if not relevant:
            continue

        event = WatchEvent(changed_paths=relevant, timestamp=time.monotonic())

        names = ", ".join(str(p) for p in sorted(relevant))
        on_event(f"[watch] change detected: {names}")

        try:
            result = run_cycle(event)
        except Exception as exc:
            on_error(exc)
            continue

        on_event(f"[watch] reformatted {len(result.reformatted)} document(s)")
        on_cycle_result(result)


def format_watch_cycle_json(result: WatchCycleResult) -> dict[str, object]:
    """Format a cycle result as a JSON-serializable dict."""
    return {
        "command": "watch",
        "ok": not result.failed,
        "reformatted": sorted(str(p) for p in result.reformatted),
        "failed": {str(p): msg for p, msg in sorted(result.failed.items())},
        "duration_s": round(result.duration_s, 2),
        "changed_paths": sorted(str(p) for p in result.changed_paths),
    }


def build_cycle_runner(options: FormatOptions) -> Callable[[WatchEvent], WatchCycleResult]:
    """Create a cycle runner that reformats each changed document in place."""
    from fubelt.files import format_file

    def runner(event: WatchEvent) -> WatchCycleResult:
        t0 = time.monotonic()
        reformatted: set[Path] = set()
        failed: dict[Path, str] = {}
        for path in sorted(event.changed_paths):
            if not path.is_file():
                # Deleted or renamed away since the event fired.
                continue
            try:
                result = format_file(path, options)
            except FubeltIOError as e:
                logger.warning("watch: %s", e)
                failed[path] = str(e)
                continue
            if result.changed:
                reformatted.add(path)

        return WatchCycleResult(
            reformatted=frozenset(reformatted),
            failed=failed,
            duration_s=time.monotonic() - t0,
            changed_paths=event.changed_paths,
        )

    return runner


def make_watchfiles_iter(
    watch_paths: list[Path],
) -> AsyncIterator[set[tuple[Any, str]]]:
    """Create an async iterator using watchfiles.awatch()."""
    import watchfiles  # type: ignore[import-untyped]

    return watchfiles.awatch(*watch_paths, debounce=200)
