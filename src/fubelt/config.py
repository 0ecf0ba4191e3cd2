"""Project configuration loading for Fubelt.

This module is intentionally small and deterministic: it only reads
`fubelt.toml` and performs light validation.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fubelt.errors import FubeltConfigError
from fubelt.formatter import FormatOptions

CONFIG_FILENAME = "fubelt.toml"

_INDENT_STYLES = ("tab", "space")


@dataclass(frozen=True)
class FormatConfig:
    indent_style: str
    indent_size: int

    def to_options(self) -> FormatOptions:
        if self.indent_style == "space":
            return FormatOptions.spaces(self.indent_size)
        return FormatOptions()


@dataclass(frozen=True)
class PathsConfig:
    include: list[str]
    exclude: list[str]
    extensions: list[str]


@dataclass(frozen=True)
class MCPConfig:
    enabled: bool


@dataclass(frozen=True)
class FubeltConfig:
    version: int
    format: FormatConfig
    paths: PathsConfig
    mcp: MCPConfig


def default_config() -> FubeltConfig:
    """The configuration used when a project has no `fubelt.toml`."""

    return FubeltConfig(
        version=1,
        format=FormatConfig(indent_style="tab", indent_size=4),
        paths=PathsConfig(include=["."], exclude=[], extensions=[".fubelt"]),
        mcp=MCPConfig(enabled=True),
    )


def find_project_root(start: Path) -> Path:
    """Walk upward from `start` (file or directory) looking for `fubelt.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        cur = cur.parent

    cur = cur.resolve()
    while True:
        if (cur / CONFIG_FILENAME).is_file():
            return cur
        if cur.parent == cur:
            break
        cur = cur.parent

    raise FubeltConfigError("Could not find fubelt.toml by walking upward from start path.")


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise FubeltConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_str_list(value: Any, *, name: str) -> list[str]:
    if not isinstance(value, list) or any(not isinstance(x, str) for x in value):
        raise FubeltConfigError(f"Expected {name} to be a list of strings.")
    return list(value)


def _as_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise FubeltConfigError(f"Expected {name} to be a boolean.")
    return value


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise FubeltConfigError(f"Expected {name} to be an integer.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise FubeltConfigError(f"Expected {name} to be a string.")
    return value


def load_config(*, root: Path | None = None, config_path: Path | None = None) -> FubeltConfig:
    """Load and validate `fubelt.toml`.

    If neither `root` nor `config_path` are provided, the project root is
    discovered by walking upward from the current working directory.
    """

    if config_path is None:
        if root is None:
            root = find_project_root(Path.cwd())
        config_path = root / CONFIG_FILENAME

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise FubeltConfigError(f"Missing fubelt.toml at: {config_path}") from e
    except OSError as e:
        raise FubeltConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise FubeltConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise FubeltConfigError(f"Invalid TOML in {config_path}: {e}") from e

    version = data.get("version", None)
    if version is None:
        raise FubeltConfigError("Missing required `version = 1` in fubelt.toml.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise FubeltConfigError(f"Unsupported config version: {version_i} (expected 1).")

    defaults = default_config()
    format_tbl = _as_table(data.get("format"), name="format")
    paths_tbl = _as_table(data.get("paths"), name="paths")
    mcp_tbl = _as_table(data.get("mcp"), name="mcp")

    if "indent_style" in format_tbl:
        indent_style = _as_str(format_tbl["indent_style"], name="format.indent_style")
    else:
        indent_style = defaults.format.indent_style

    if "indent_size" in format_tbl:
        indent_size = _as_int(format_tbl["indent_size"], name="format.indent_size")
    else:
        indent_size = defaults.format.indent_size

    if "include" in paths_tbl:
        include = _as_str_list(paths_tbl["include"], name="paths.include")
    else:
        include = list(defaults.paths.include)

    if "exclude" in paths_tbl:
        exclude = _as_str_list(paths_tbl["exclude"], name="paths.exclude")
    else:
        exclude = list(defaults.paths.exclude)

    if "extensions" in paths_tbl:
        extensions = _as_str_list(paths_tbl["extensions"], name="paths.extensions")
    else:
        extensions = list(defaults.paths.extensions)

    if "enabled" in mcp_tbl:
        mcp_enabled = _as_bool(mcp_tbl["enabled"], name="mcp.enabled")
    else:
        mcp_enabled = defaults.mcp.enabled

    # Validation
    if indent_style not in _INDENT_STYLES:
        raise FubeltConfigError(
            f"Invalid config: format.indent_style must be one of {', '.join(_INDENT_STYLES)}."
        )

    if indent_size < 1:
        raise FubeltConfigError("Invalid config: format.indent_size must be >= 1.")

    if not include:
        raise FubeltConfigError("Invalid config: paths.include must not be empty.")

    if any(not ext.startswith(".") for ext in extensions):
        raise FubeltConfigError("Invalid config: paths.extensions entries must start with '.'.")

    return FubeltConfig(
        version=version_i,
        format=FormatConfig(indent_style=indent_style, indent_size=indent_size),
        paths=PathsConfig(include=include, exclude=exclude, extensions=extensions),
        mcp=MCPConfig(enabled=mcp_enabled),
    )
