"""External sorter - main public API.

Orchestrates chunk production, the run store, the k-way merge and the atomic
output file.
"""

from __future__ import annotations

import itertools
import logging
import os
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from ..components.chunker import ChunkProducer
from ..components.codec import read_values
from ..components.merger import KWayMerger
from ..components.output import AtomicOutput
from ..components.run_store import FileRunStore
from ..components.sources import MemoryRunSource
from .config import DEFAULT_BATCH_SIZE, SortConfig
from .errors import StorageError
from .types import SortStats, Value

logger = logging.getLogger(__name__)

_invocations = itertools.count()


def invocation_token() -> str:
    """Return a name component unique to this process and invocation."""
    return f"{os.getpid()}-{next(_invocations)}"


class ExternalSorter:
    """Sort streams of u64 values larger than memory.

    Args:
        config: Sort configuration

    Public API:
        - sort(values, output_path): Sort an iterable of values into a file
        - sort_file(input_path, output_path): Sort a text file of values

    Invariants:
        - Run files are deleted before sort() returns or raises
        - The output file appears only after every value has been written
        - The output holds exactly as many values as the input
    """

    def __init__(self, config: SortConfig | None = None):
        self.config = config if config is not None else SortConfig()

    def sort(self, values: Iterable[Value], output_path: str | Path) -> SortStats:
        """Sort values ascending into output_path, one per line."""
        output_path = Path(output_path)
        token = invocation_token()
        run_dir = Path(self.config.run_dir) if self.config.run_dir is not None else output_path.parent
        merger = KWayMerger(self.config.max_open_runs)
        started = time.perf_counter()

        logger.info(
            f"Sorting into {output_path} (batch_size={self.config.batch_size}, "
            f"max_open_runs={self.config.max_open_runs})"
        )

        with AtomicOutput(output_path, token) as output:
            if not run_dir.is_dir():
                raise StorageError(f"Run directory {run_dir} does not exist")

            with FileRunStore(
                run_dir, f"{output_path.name}.{token}", self.config.io_buffer_records
            ) as store:
                producer = ChunkProducer(
                    store, self.config.batch_size, self.config.keep_tail_in_memory
                )
                chunks = producer.produce(values)

                runs = merger.reduce(store, chunks.runs, reserved=1 if chunks.tail else 0)
                sources: list[Any] = [store.open_source(run) for run in runs]
                if chunks.tail:
                    sources.append(MemoryRunSource(store.runs_created, chunks.tail))

                # Zero sources means empty input: the output stays empty
                if sources:
                    logger.info(f"Final merge of {len(sources)} runs")
                    merger.merge_into(sources, output)

                if output.count != chunks.values:
                    raise StorageError(
                        f"Merged {output.count} values but {chunks.values} were produced"
                    )
                runs_created = store.runs_created

        stats = SortStats(
            output_path=output_path,
            values=chunks.values,
            runs_created=runs_created,
            merge_passes=merger.passes + (1 if sources else 0),
            elapsed_seconds=time.perf_counter() - started,
        )
        logger.info(
            f"Sorted {stats.values} values with {stats.runs_created} runs "
            f"in {stats.merge_passes} merge passes ({stats.elapsed_seconds:.3f}s)"
        )
        return stats

    def sort_file(self, input_path: str | Path, output_path: str | Path) -> SortStats:
        """Sort a text file of u64 values, one per line; '-' reads stdin."""
        values = read_values(input_path)
        try:
            return self.sort(values, output_path)
        finally:
            values.close()


def sort_file(
    input_path: str | Path,
    output_path: str | Path,
    batch_size: int = DEFAULT_BATCH_SIZE,
    **options: Any,
) -> SortStats:
    """Sort input_path into output_path with a one-off SortConfig."""
    config = SortConfig(batch_size=batch_size, **options)
    return ExternalSorter(config).sort_file(input_path, output_path)
