"""Discovery helpers: find the Fubelt documents a command should touch."""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable
from pathlib import Path

from fubelt.errors import FubeltDiscoveryError

# Never descend into these while scanning a directory.
_SKIP_DIRS = frozenset({".git", ".hg", ".svn", "node_modules", "__pycache__", ".venv", "venv"})


def _is_excluded(rel_posix: str, *, exclude: list[str]) -> bool:
    # Patterns are matched against a posix-style relative path.
    for pat in exclude:
        if fnmatch.fnmatchcase(rel_posix, pat):
            return True

        # `fnmatch` doesn't treat a leading `**/` as "zero or more directories".
        # Normalize by stripping leading `**/`.
        stripped = pat
        while stripped.startswith("**/"):
            stripped = stripped[3:]
            if fnmatch.fnmatchcase(rel_posix, stripped):
                return True

    return False


def is_skipped(rel: Path, *, exclude: list[str]) -> bool:
    """True when `rel` (relative to a scanned root) sits in a tooling directory or is excluded."""

    if any(part in _SKIP_DIRS for part in rel.parts[:-1]):
        return True
    return _is_excluded(rel.as_posix(), exclude=exclude)


def has_document_suffix(path: Path, extensions: Iterable[str]) -> bool:
    return path.suffix in set(extensions)


def discover_documents(
    roots: list[Path],
    *,
    extensions: list[str],
    exclude: list[str],
) -> list[Path]:
    """Return the sorted, de-duplicated documents under `roots`.

    - A root that is a file is taken as-is, whatever its suffix.
    - A root that is a directory is scanned recursively for files whose suffix
      is in `extensions`, skipping VCS/tooling directories and any path that
      matches a glob in `exclude` (relative to that root).
    - A root that does not exist raises `FubeltDiscoveryError`.
    """

    found: set[Path] = set()

    for root in roots:
        if root.is_file():
            found.add(root.resolve())
            continue
        if not root.is_dir():
            raise FubeltDiscoveryError(f"No such file or directory: {root}")

        for path in root.rglob("*"):
            if not path.is_file() or not has_document_suffix(path, extensions):
                continue

            if is_skipped(path.relative_to(root), exclude=exclude):
                continue

            found.add(path.resolve())

    return sorted(found)
