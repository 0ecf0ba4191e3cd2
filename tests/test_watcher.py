"""Tests for fubelt.watcher module."""

from __future__ import annotations

import asyncio
import sys
import types
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest

from fubelt.formatter import FormatOptions
from fubelt.watcher import (
    WatchCycleResult,
    WatchEvent,
    build_cycle_runner,
    filter_document_files,
    format_watch_cycle_json,
    run_watch_loop,
)

# ---------------------------------------------------------------------------
# Optional dependency check
# ---------------------------------------------------------------------------


def test_check_watchfiles_available_raises_when_missing(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "watchfiles", None)

    from fubelt.watcher import check_watchfiles_available

    with pytest.raises(ImportError, match="pip install fubelt\\[watch\\]"):
        check_watchfiles_available()


def test_check_watchfiles_available_succeeds_when_installed(monkeypatch) -> None:
    fake = types.ModuleType("watchfiles")
    monkeypatch.setitem(sys.modules, "watchfiles", fake)

    from fubelt.watcher import check_watchfiles_available

    check_watchfiles_available()  # no exception


# ---------------------------------------------------------------------------
# File filtering
# ---------------------------------------------------------------------------


def test_filter_keeps_documents_under_roots() -> None:
    changed = frozenset({Path("/project/pages/home.fubelt")})
    result = filter_document_files(changed, roots=[Path("/project")], extensions=[".fubelt"])
    assert result == changed


def test_filter_drops_other_extensions_and_outside_roots() -> None:
    changed = frozenset(
        {
            Path("/project/pages/home.fubelt"),  # valid
            Path("/project/pages/notes.md"),  # wrong suffix
            Path("/elsewhere/page.fubelt"),  # outside roots
        }
    )
    result = filter_document_files(changed, roots=[Path("/project")], extensions=[".fubelt"])
    assert result == frozenset({Path("/project/pages/home.fubelt")})


def test_filter_accepts_a_watched_file_root() -> None:
    page = Path("/project/page.fubelt")
    assert filter_document_files(frozenset({page}), roots=[page], extensions=[".fubelt"]) == {page}


def test_filter_applies_skip_dirs_and_exclude() -> None:
    changed = frozenset(
        {
            Path("/project/pages/home.fubelt"),
            Path("/project/node_modules/lib/widget.fubelt"),
            Path("/project/pages/drafts/wip.fubelt"),
        }
    )
    result = filter_document_files(
        changed,
        roots=[Path("/project")],
        extensions=[".fubelt"],
        exclude=["**/drafts/**"],
    )
    assert result == frozenset({Path("/project/pages/home.fubelt")})


def test_filter_exclude_is_relative_to_the_watched_root() -> None:
    page = Path("/project/vendor/page.fubelt")
    kept = filter_document_files(
        frozenset({page}),
        roots=[Path("/project/vendor")],
        extensions=[".fubelt"],
        exclude=["vendor/**"],
    )
    assert kept == {page}


# ---------------------------------------------------------------------------
# Watch loop orchestration
# ---------------------------------------------------------------------------


async def _fake_changes(
    batches: list[set[tuple[Any, str]]],
) -> AsyncIterator[set[tuple[Any, str]]]:
    for batch in batches:
        yield batch


def _ok_cycle(calls: list[WatchEvent]):
    def run_cycle(event: WatchEvent) -> WatchCycleResult:
        calls.append(event)
        return WatchCycleResult(
            reformatted=event.changed_paths,
            failed={},
            duration_s=0.1,
            changed_paths=event.changed_paths,
        )

    return run_cycle


def _run_loop(batches, run_cycle, *, messages=None, errors=None, results=None) -> None:
    asyncio.run(
        run_watch_loop(
            changes_iter=_fake_changes(batches),
            run_cycle=run_cycle,
            on_event=(messages.append if messages is not None else lambda m: None),
            on_cycle_result=(results.append if results is not None else lambda r: None),
            on_error=(errors.append if errors is not None else lambda e: None),
            roots=[Path("/src")],
            extensions=[".fubelt"],
        )
    )


def test_watch_loop_calls_run_cycle_on_change() -> None:
    calls: list[WatchEvent] = []
    _run_loop([{(1, "/src/page.fubelt")}], _ok_cycle(calls))
    assert len(calls) == 1
    assert Path("/src/page.fubelt") in calls[0].changed_paths


def test_watch_loop_skips_irrelevant_changes() -> None:
    calls: list[WatchEvent] = []
    _run_loop([{(1, "/src/readme.md")}, {(1, "/other/x.fubelt")}], _ok_cycle(calls))
    assert calls == []


def test_watch_loop_emits_messages_and_results() -> None:
    messages: list[str] = []
    results: list[WatchCycleResult] = []
    _run_loop([{(1, "/src/a.fubelt")}], _ok_cycle([]), messages=messages, results=results)
    assert any("change detected" in m and "a.fubelt" in m for m in messages)
    assert any("reformatted 1 document(s)" in m for m in messages)
    assert len(results) == 1


def test_watch_loop_continues_after_cycle_error() -> None:
    errors: list[BaseException] = []
    seen: list[WatchEvent] = []

    def flaky(event: WatchEvent) -> WatchCycleResult:
        seen.append(event)
        if len(seen) == 1:
            raise RuntimeError("boom")
        return _ok_cycle([])(event)

    _run_loop([{(1, "/src/a.fubelt")}, {(1, "/src/b.fubelt")}], flaky, errors=errors)
    assert len(seen) == 2
    assert len(errors) == 1
    assert str(errors[0]) == "boom"


def test_watch_loop_leaves_skipped_documents_alone(tmp_path: Path) -> None:
    page = tmp_path / "page.fubelt"
    vendored = tmp_path / "node_modules" / "lib.fubelt"
    draft = tmp_path / "drafts" / "wip.fubelt"
    for path in (page, vendored, draft):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("<div>\n<p>x</p>\n</div>", encoding="utf-8")

    results: list[WatchCycleResult] = []
    asyncio.run(
        run_watch_loop(
            changes_iter=_fake_changes([{(1, str(p)) for p in (page, vendored, draft)}]),
            run_cycle=build_cycle_runner(FormatOptions()),
            on_event=lambda m: None,
            on_cycle_result=results.append,
            on_error=lambda e: None,
            roots=[tmp_path],
            extensions=[".fubelt"],
            exclude=["drafts/**"],
        )
    )

    assert len(results) == 1
    assert results[0].reformatted == frozenset({page})
    assert page.read_text(encoding="utf-8") == "<div>\n\t<p>x</p>\n</div>"
    assert vendored.read_text(encoding="utf-8") == "<div>\n<p>x</p>\n</div>"
    assert draft.read_text(encoding="utf-8") == "<div>\n<p>x</p>\n</div>"


# ---------------------------------------------------------------------------
# Cycle runner
# ---------------------------------------------------------------------------


def test_cycle_runner_reformats_changed_documents(tmp_path: Path) -> None:
    messy = tmp_path / "messy.fubelt"
    messy.write_text("<div>\n<p>x</p>\n</div>\n", encoding="utf-8")
    clean = tmp_path / "clean.fubelt"
    clean.write_text("<div>\n\t<p>x</p>\n</div>\n", encoding="utf-8")
    gone = tmp_path / "gone.fubelt"

    runner = build_cycle_runner(FormatOptions())
    result = runner(WatchEvent(changed_paths=frozenset({messy, clean, gone}), timestamp=0.0))

    assert result.reformatted == frozenset({messy})
    assert result.failed == {}
    assert messy.read_text(encoding="utf-8") == "<div>\n\t<p>x</p>\n</div>\n"


def test_cycle_runner_records_failures(tmp_path: Path) -> None:
    bad = tmp_path / "bad.fubelt"
    bad.write_bytes(b"<div>\xff</div>")

    runner = build_cycle_runner(FormatOptions())
    result = runner(WatchEvent(changed_paths=frozenset({bad}), timestamp=0.0))

    assert result.reformatted == frozenset()
    assert bad in result.failed
    assert "not valid UTF-8" in result.failed[bad]


def test_format_watch_cycle_json() -> None:
    result = WatchCycleResult(
        reformatted=frozenset({Path("/src/a.fubelt")}),
        failed={Path("/src/b.fubelt"): "broken"},
        duration_s=0.1234,
        changed_paths=frozenset({Path("/src/a.fubelt"), Path("/src/b.fubelt")}),
    )
    data = format_watch_cycle_json(result)
    assert data == {
        "command": "watch",
        "ok": False,
        "reformatted": ["/src/a.fubelt"],
        "failed": {"/src/b.fubelt": "broken"},
        "duration_s": 0.12,
        "changed_paths": ["/src/a.fubelt", "/src/b.fubelt"],
    }
