"""Configuration for the external sorter.

Defines all tunable parameters for the sort engine.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from .errors import ConfigError

DEFAULT_BATCH_SIZE = 1024 * 1024
DEFAULT_IO_BUFFER_RECORDS = 4096
DEFAULT_MAX_OPEN_RUNS = 256


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass
class SortConfig:
    """Configuration parameters for the external sort engine.

    Attributes:
        batch_size: Number of values sorted in memory per run (element count)
        max_open_runs: Merge fan-in limit, also the cap on open run files;
            None merges all runs in one pass
        io_buffer_records: Records per block when reading or writing runs
        keep_tail_in_memory: Keep the final batch in memory instead of spilling it
        run_dir: Directory for run files; defaults to the output's directory
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    max_open_runs: int | None = DEFAULT_MAX_OPEN_RUNS
    io_buffer_records: int = DEFAULT_IO_BUFFER_RECORDS
    keep_tail_in_memory: bool = False
    run_dir: str | Path | None = None

    def __post_init__(self) -> None:
        if not _is_positive_int(self.batch_size):
            raise ConfigError(f"batch_size must be a positive integer, got {self.batch_size!r}")
        if self.max_open_runs is not None and not (
            _is_positive_int(self.max_open_runs) and self.max_open_runs >= 2
        ):
            raise ConfigError(
                f"max_open_runs must be an integer >= 2 or None, got {self.max_open_runs!r}"
            )
        if not _is_positive_int(self.io_buffer_records):
            raise ConfigError(
                f"io_buffer_records must be a positive integer, got {self.io_buffer_records!r}"
            )
        if self.run_dir is not None:
            self.run_dir = Path(self.run_dir)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SortConfig:
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_toml(cls, path: str | Path, **overrides: Any) -> SortConfig:
        """Load config from the [extsort] table of a TOML file.

        Top-level keys are used when the file has no [extsort] table.
        Keyword overrides that are not None take precedence over file values.
        """
        path = Path(path)
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigError(f"Config file not found: {path}") from e
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load config {path}: {e}") from e

        section = data.get("extsort", data)
        if not isinstance(section, dict):
            raise ConfigError(f"[extsort] in {path} must be a table")

        merged = dict(section)
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(merged)
