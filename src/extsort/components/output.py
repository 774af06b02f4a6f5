"""Atomic output file.

Values are written to a temporary sibling of the target and renamed over it
only once the whole stream has been written.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TextIO

from ..core.errors import OutputError
from ..core.types import Value
from .codec import format_value

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".partial"


class AtomicOutput:
    """Write-temp-then-rename text sink for sorted values.

    Args:
        path: Final output path
        token: Invocation token used to name the temporary file

    Invariants:
        - The target is replaced only by commit()
        - Leaving the context manager commits on success and aborts on error
        - After abort() no temporary file remains
    """

    def __init__(self, path: str | Path, token: str):
        self.path = Path(path)
        self.temp_path = self.path.with_name(f"{self.path.name}.{token}{PARTIAL_SUFFIX}")
        self.count = 0
        self._fd: TextIO | None = None
        self._done = False

    def open(self) -> None:
        """Create the temporary file."""
        if not self.path.parent.is_dir():
            raise OutputError(f"Output directory {self.path.parent} does not exist")
        try:
            self._fd = open(self.temp_path, "w", encoding="ascii", newline="\n")
        except OSError as e:
            raise OutputError(f"Cannot create output {self.temp_path}: {e}") from e

    def write(self, value: Value) -> None:
        """Append one value as a line."""
        if self._fd is None:
            raise OutputError("Output is not open")
        try:
            self._fd.write(format_value(value))
        except OSError as e:
            raise OutputError(f"Failed to write output {self.temp_path}: {e}") from e
        self.count += 1

    def commit(self) -> None:
        """Flush the temporary file and atomically move it over the target."""
        if self._fd is None:
            raise OutputError("Output is not open")
        try:
            self._fd.flush()
            os.fsync(self._fd.fileno())
            self._fd.close()
            self._fd = None
            os.replace(self.temp_path, self.path)
        except OSError as e:
            raise OutputError(f"Failed to commit output {self.path}: {e}") from e
        self._done = True
        logger.info(f"Wrote {self.count} values to {self.path}")

    def abort(self) -> OSError | None:
        """Discard the temporary file; return the cleanup failure, if any."""
        self._done = True
        try:
            if self._fd is not None:
                fd = self._fd
                self._fd = None
                fd.close()
        except OSError as e:
            logger.warning(f"Failed to close partial output {self.temp_path}: {e}")
        try:
            self.temp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete partial output {self.temp_path}: {e}")
            return e
        return None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._done:
            return False
        if exc_val is None:
            try:
                self.commit()
            except OutputError:
                self.abort()
                raise
            return False

        failure = self.abort()
        if failure is not None:
            exc_val.add_note(f"Partial output {self.temp_path} was not removed: {failure}")
        return False
