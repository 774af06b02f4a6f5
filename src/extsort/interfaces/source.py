"""Protocol definition for run sources."""

from __future__ import annotations

from typing import Protocol

from ..core.types import RunId, Value


class RunSource(Protocol):
    """Sequential, peekable view over one sorted run."""

    run_id: RunId

    def has_next(self) -> bool:
        """Return True while a value remains to be consumed."""
        ...

    def peek(self) -> Value:
        """Return the current head value without consuming it."""
        ...

    def advance(self) -> None:
        """Consume the current head value."""
        ...

    def close(self) -> None:
        """Release any resources held by the source."""
        ...
