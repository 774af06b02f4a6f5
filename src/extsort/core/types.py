"""Common type definitions for the external sorter.

Defines fundamental types used across all components.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# Core primitive types
Value = int
RunId = int

U64_MAX = 2**64 - 1

# Run record format: [value (8B, little-endian unsigned)]
RECORD_FORMAT = "<Q"
RECORD_SIZE = 8


class RunState(Enum):
    """Lifecycle state of a run."""

    WRITING = "writing"
    SEALED = "sealed"
    DESTROYED = "destroyed"


@dataclass
class SortStats:
    """Summary of one sort invocation."""

    output_path: Path
    values: int
    runs_created: int
    merge_passes: int
    elapsed_seconds: float
