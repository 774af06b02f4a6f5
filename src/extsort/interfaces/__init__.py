"""Protocol definitions for sorter components."""

from .sink import ValueSink
from .source import RunSource
from .store import RunStore

__all__ = ["RunSource", "RunStore", "ValueSink"]
