"""Sort engine components."""

from .chunker import ChunkProducer, ChunkResult
from .merger import KWayMerger
from .output import AtomicOutput
from .run_store import FileRun, FileRunStore
from .sources import DiskRunSource, MemoryRunSource

__all__ = [
    "ChunkProducer",
    "ChunkResult",
    "KWayMerger",
    "AtomicOutput",
    "FileRun",
    "FileRunStore",
    "DiskRunSource",
    "MemoryRunSource",
]
