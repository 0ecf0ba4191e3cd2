from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from fubelt.errors import FubeltConfigError, FubeltDiscoveryError, FubeltError, FubeltIOError
from fubelt.formatter import FormatOptions, format_document
from fubelt.script import format_script
from fubelt.style import format_style
from fubelt.tags import open_tags_before


def _package_version() -> str:
    try:
        return version("fubelt")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "FormatOptions",
    "FubeltConfigError",
    "FubeltDiscoveryError",
    "FubeltError",
    "FubeltIOError",
    "__version__",
    "format_document",
    "format_script",
    "format_style",
    "open_tags_before",
]
