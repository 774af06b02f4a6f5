"""Run source implementations.

Peekable sequential views over sorted runs, consumed by the k-way merger.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.types import RunId, Value
    from .run_store import FileRun, FileRunStore


class MemoryRunSource:
    """Run source over an in-memory sorted sequence.

    Args:
        run_id: Identifier used as merge tie-break
        values: Values sorted ascending
    """

    def __init__(self, run_id: RunId, values: Sequence[Value]):
        self.run_id = run_id
        self._values = values
        self._pos = 0

    def has_next(self) -> bool:
        return self._pos < len(self._values)

    def peek(self) -> Value:
        if self._pos >= len(self._values):
            raise IndexError(f"Run {self.run_id} is exhausted")
        return self._values[self._pos]

    def advance(self) -> None:
        if self._pos >= len(self._values):
            raise IndexError(f"Run {self.run_id} is exhausted")
        self._pos += 1

    def close(self) -> None:
        self._values = ()
        self._pos = 0

    def __repr__(self) -> str:
        return f"MemoryRunSource(run_id={self.run_id}, remaining={len(self._values) - self._pos})"


class DiskRunSource:
    """Run source backed by a sealed run file of a FileRunStore.

    Holds one lookahead value read through the store's read_next().
    """

    def __init__(self, store: FileRunStore, run: FileRun):
        self.run_id = run.run_id
        self._store = store
        self._run = run
        self._head: Value | None = store.read_next(run)

    def has_next(self) -> bool:
        return self._head is not None

    def peek(self) -> Value:
        if self._head is None:
            raise IndexError(f"Run {self.run_id} is exhausted")
        return self._head

    def advance(self) -> None:
        if self._head is None:
            raise IndexError(f"Run {self.run_id} is exhausted")
        self._head = self._store.read_next(self._run)

    def close(self) -> None:
        """Close the underlying file; the run itself stays registered."""
        self._head = None
        self._run.close()

    def __repr__(self) -> str:
        return f"DiskRunSource(run_id={self.run_id}, path={str(self._run.path)!r})"
