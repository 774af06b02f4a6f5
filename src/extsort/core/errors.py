"""Exception hierarchy for the external sorter.

Defines all custom exceptions used throughout the implementation.
"""

from __future__ import annotations


class ExtSortError(Exception):
    """Base exception for all sorter errors."""
    pass


class ConfigError(ExtSortError, ValueError):
    """Raised when configuration values are invalid."""
    pass


class InputError(ExtSortError):
    """Raised when the input cannot be read or holds a malformed value."""
    pass


class StorageError(ExtSortError):
    """Raised when run creation, writing, reading or deletion fails."""
    pass


class OutputError(ExtSortError):
    """Raised when the final output cannot be written or committed."""
    pass
