"""Protocol definition for value sinks."""

from __future__ import annotations

from typing import Protocol

from ..core.types import Value


class ValueSink(Protocol):
    """Append-only destination for merged values."""

    def write(self, value: Value) -> None:
        """Append a value to the sink."""
        ...
