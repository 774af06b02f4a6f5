"""Core package."""

from .config import SortConfig
from .sorter import ExternalSorter, sort_file

__all__ = ["SortConfig", "ExternalSorter", "sort_file"]
