from __future__ import annotations

from pathlib import Path

import pytest

from fubelt.discovery import discover_documents
from fubelt.errors import FubeltDiscoveryError


def _touch(path: Path, text: str = "<div>\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_discovers_documents_recursively(tmp_path: Path) -> None:
    a = _touch(tmp_path / "a.fubelt")
    b = _touch(tmp_path / "pages" / "nested" / "b.fubelt")
    _touch(tmp_path / "pages" / "readme.md")

    found = discover_documents([tmp_path], extensions=[".fubelt"], exclude=[])
    assert found == sorted([a.resolve(), b.resolve()])


def test_respects_extensions(tmp_path: Path) -> None:
    _touch(tmp_path / "a.fubelt")
    fbt = _touch(tmp_path / "b.fbt")
    assert discover_documents([tmp_path], extensions=[".fbt"], exclude=[]) == [fbt.resolve()]


def test_exclude_patterns(tmp_path: Path) -> None:
    keep = _touch(tmp_path / "src" / "keep.fubelt")
    _touch(tmp_path / "src" / "vendor" / "lib.fubelt")
    _touch(tmp_path / "vendor" / "top.fubelt")

    found = discover_documents([tmp_path], extensions=[".fubelt"], exclude=["**/vendor/*"])
    assert found == [keep.resolve()]


def test_skips_tooling_directories(tmp_path: Path) -> None:
    keep = _touch(tmp_path / "page.fubelt")
    _touch(tmp_path / "node_modules" / "pkg" / "x.fubelt")
    _touch(tmp_path / ".git" / "y.fubelt")

    assert discover_documents([tmp_path], extensions=[".fubelt"], exclude=[]) == [keep.resolve()]


def test_explicit_file_is_taken_regardless_of_suffix(tmp_path: Path) -> None:
    f = _touch(tmp_path / "page.html")
    assert discover_documents([f], extensions=[".fubelt"], exclude=[]) == [f.resolve()]


def test_overlapping_roots_are_deduplicated(tmp_path: Path) -> None:
    f = _touch(tmp_path / "pages" / "a.fubelt")
    roots = [tmp_path, tmp_path / "pages", f]
    found = discover_documents(roots, extensions=[".fubelt"], exclude=[])
    assert found == [f.resolve()]


def test_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(FubeltDiscoveryError, match="No such file or directory"):
        discover_documents([tmp_path / "nope"], extensions=[".fubelt"], exclude=[])
