"""Protocol definition for the run store."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from ..core.types import Value
from .source import RunSource


class RunStore(Protocol):
    """Registry owning the lifetime of every run of one sort invocation."""

    def create_run(self) -> Any:
        """Return a fresh, empty, writable run handle."""
        ...

    def write(self, run: Any, value: Value) -> None:
        """Append one value to a writable run."""
        ...

    def write_many(self, run: Any, values: Iterable[Value]) -> int:
        """Append values to a writable run; return how many were written."""
        ...

    def seal_and_reopen_for_read(self, run: Any) -> None:
        """Finish writing and switch the run to sequential read mode."""
        ...

    def read_next(self, run: Any) -> Value | None:
        """Return the next value of a sealed run, or None when drained."""
        ...

    def open_source(self, run: Any) -> RunSource:
        """Return a peekable source over a sealed run."""
        ...

    def release(self, run: Any) -> None:
        """Delete one fully drained run ahead of destroy_all()."""
        ...

    def destroy_all(self) -> Any:
        """Delete every run created by this store."""
        ...
