"""Run store implementation.

Owns the run files of one sort invocation: creates them, hands out write and
read access, and deletes every one of them exactly once.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterable
from itertools import islice
from pathlib import Path
from typing import BinaryIO

from ..core.config import DEFAULT_IO_BUFFER_RECORDS
from ..core.errors import InputError, StorageError
from ..core.types import RECORD_FORMAT, RECORD_SIZE, RunId, RunState, Value
from .sources import DiskRunSource

logger = logging.getLogger(__name__)

RUN_SUFFIX = ".run"

_RECORD = struct.Struct(RECORD_FORMAT)


class FileRun:
    """Handle to one run file.

    Args:
        run_id: Ordinal id, unique within the owning store
        path: Location of the run file

    A sealed run opens its file lazily on the first read and remembers its
    read offset, so it can be closed and reopened without losing its place.
    """

    def __init__(self, run_id: RunId, path: Path):
        self.run_id = run_id
        self.path = path
        self.state = RunState.WRITING
        self.count = 0
        self._fd: BinaryIO | None = None
        self._block: tuple[int, ...] = ()
        self._pos = 0
        self._offset = 0  # bytes handed to _block so far
        self._exhausted = False

    def close(self) -> None:
        """Release the file descriptor, if any."""
        # Unconsumed buffered records are read again after a reopen
        self._offset -= (len(self._block) - self._pos) * RECORD_SIZE
        self._block = ()
        self._pos = 0
        if self._fd:
            fd = self._fd
            self._fd = None
            fd.close()

    def __repr__(self) -> str:
        return f"FileRun(run_id={self.run_id}, state={self.state.value}, count={self.count})"


class FileRunStore:
    """Registry of run files scoped to a single sort invocation.

    Args:
        directory: Directory holding the run files
        prefix: File name prefix, unique per invocation
        io_buffer_records: Records per block for reads and writes

    Invariants:
        - Run ids are 0, 1, 2, ... in creation order
        - A run is written fully and sealed before it can be read
        - destroy_all() deletes every registered run and runs once
        - Leaving the context manager always calls destroy_all()
    """

    def __init__(
        self,
        directory: str | Path,
        prefix: str,
        io_buffer_records: int = DEFAULT_IO_BUFFER_RECORDS,
    ):
        self.directory = Path(directory)
        self.prefix = prefix
        self.io_buffer_records = io_buffer_records

        self._runs: dict[RunId, FileRun] = {}
        self._next_id: RunId = 0
        self._destroyed = False

    @property
    def runs_created(self) -> int:
        """Total number of runs created, including released ones."""
        return self._next_id

    def live_runs(self) -> list[FileRun]:
        """Return runs that still exist on disk, in id order."""
        return [self._runs[run_id] for run_id in sorted(self._runs)]

    def run_path(self, run_id: RunId) -> Path:
        return self.directory / f"{self.prefix}.{run_id:06d}{RUN_SUFFIX}"

    def create_run(self) -> FileRun:
        """Create a fresh, empty, writable run."""
        if self._destroyed:
            raise StorageError("Run store has already been destroyed")

        run = FileRun(self._next_id, self.run_path(self._next_id))
        try:
            run._fd = open(run.path, "wb")
        except OSError as e:
            raise StorageError(f"Cannot create run {run.path}: {e}") from e

        self._next_id += 1
        self._runs[run.run_id] = run
        logger.debug(f"Created run {run.run_id} at {run.path}")
        return run

    def write(self, run: FileRun, value: Value) -> None:
        """Append one value to a writable run."""
        self._check_state(run, RunState.WRITING)
        try:
            data = _RECORD.pack(value)
        except struct.error as e:
            raise InputError(f"Value {value!r} is not an unsigned 64-bit integer") from e
        try:
            run._fd.write(data)
        except OSError as e:
            raise StorageError(f"Failed to write run {run.path}: {e}") from e
        run.count += 1

    def write_many(self, run: FileRun, values: Iterable[Value]) -> int:
        """Append values in blocks of io_buffer_records; return the count written."""
        self._check_state(run, RunState.WRITING)
        it = iter(values)
        written = 0
        while True:
            block = list(islice(it, self.io_buffer_records))
            if not block:
                break
            try:
                data = struct.pack(f"<{len(block)}Q", *block)
            except struct.error as e:
                raise InputError(f"Run {run.run_id} received a value outside the u64 range") from e
            try:
                run._fd.write(data)
            except OSError as e:
                raise StorageError(f"Failed to write run {run.path}: {e}") from e
            written += len(block)
        run.count += written
        return written

    def seal_and_reopen_for_read(self, run: FileRun) -> None:
        """Flush the run and switch it to sequential read mode.

        The file is reopened for reading on the first read_next().
        """
        self._check_state(run, RunState.WRITING)
        try:
            run.close()
        except OSError as e:
            raise StorageError(f"Failed to seal run {run.path}: {e}") from e
        run.state = RunState.SEALED
        logger.debug(f"Sealed run {run.run_id} ({run.count} values)")

    def read_next(self, run: FileRun) -> Value | None:
        """Return the next value of a sealed run, or None once drained."""
        if run._pos < len(run._block):
            value = run._block[run._pos]
            run._pos += 1
            return value

        self._check_state(run, RunState.SEALED)
        if run._exhausted:
            return None
        try:
            if run._fd is None:
                run._fd = open(run.path, "rb")
                run._fd.seek(run._offset)
            data = run._fd.read(self.io_buffer_records * RECORD_SIZE)
        except OSError as e:
            raise StorageError(f"Failed to read run {run.path}: {e}") from e

        if not data:
            run._exhausted = True
            run.close()
            return None
        if len(data) % RECORD_SIZE:
            raise StorageError(
                f"Run {run.path} is truncated: {len(data) % RECORD_SIZE} trailing bytes"
            )

        run._block = struct.unpack(f"<{len(data) // RECORD_SIZE}Q", data)
        run._pos = 1
        run._offset += len(data)
        return run._block[0]

    def open_source(self, run: FileRun) -> DiskRunSource:
        """Return a peekable source over a sealed run."""
        self._check_state(run, RunState.SEALED)
        return DiskRunSource(self, run)

    def release(self, run: FileRun) -> None:
        """Delete a drained run before the store is destroyed."""
        if run.state is RunState.DESTROYED:
            return
        if self._runs.get(run.run_id) is not run:
            raise StorageError(f"Run {run.run_id} does not belong to this store")
        run.close()
        try:
            run.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete run {run.path}: {e}") from e
        run.state = RunState.DESTROYED
        self._runs.pop(run.run_id, None)
        logger.debug(f"Released run {run.run_id}")

    def destroy_all(self) -> list[tuple[Path, OSError]]:
        """Close and delete every registered run.

        Deletion is attempted for every run even when some fail. Failures are
        logged and returned; only the first call does any work.
        """
        if self._destroyed:
            logger.debug(f"Run store {self.prefix} already destroyed")
            return []
        self._destroyed = True

        failures: list[tuple[Path, OSError]] = []
        for run in self.live_runs():
            try:
                run.close()
            except OSError as e:
                logger.warning(f"Failed to close run {run.path}: {e}")
            try:
                run.path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to delete run {run.path}: {e}")
                failures.append((run.path, e))
            run.state = RunState.DESTROYED
        count = len(self._runs)
        self._runs.clear()

        logger.debug(f"Destroyed {count - len(failures)} of {count} runs for {self.prefix}")
        return failures

    def _check_state(self, run: FileRun, expected: RunState) -> None:
        if self._runs.get(run.run_id) is not run:
            raise StorageError(f"Run {run.run_id} does not belong to this store")
        if run.state is not expected:
            raise StorageError(
                f"Run {run.run_id} is {run.state.value}, expected {expected.value}"
            )

    def __len__(self) -> int:
        return len(self._runs)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        failures = self.destroy_all()
        if failures:
            message = "Failed to delete runs: " + ", ".join(
                f"{path} ({e})" for path, e in failures
            )
            if exc_val is None:
                raise StorageError(message)
            exc_val.add_note(message)
        return False
