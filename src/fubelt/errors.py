"""Fubelt exception hierarchy.

Keep this module small and dependency-free: it is imported broadly across the
project and by tests. The formatting core never raises these for text input;
they only come from the outer surfaces (config, discovery, file I/O).
"""


class FubeltError(Exception):
    """Base exception for all Fubelt errors."""


class FubeltConfigError(FubeltError):
    """Raised for invalid user configuration."""


class FubeltDiscoveryError(FubeltError):
    """Raised when the documents to format cannot be located."""


class FubeltIOError(FubeltError):
    """Raised when a document cannot be read, decoded or written."""
