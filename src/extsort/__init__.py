"""extsort - external merge sort for files of unsigned 64-bit integers."""

from .core.config import SortConfig
from .core.errors import (
    ExtSortError,
    ConfigError,
    InputError,
    StorageError,
    OutputError,
)
from .core.sorter import ExternalSorter, sort_file
from .core.types import U64_MAX, RunState, SortStats, Value

__all__ = [
    "SortConfig",
    "ExtSortError",
    "ConfigError",
    "InputError",
    "StorageError",
    "OutputError",
    "ExternalSorter",
    "sort_file",
    "U64_MAX",
    "RunState",
    "SortStats",
    "Value",
]
