"""Chunk producer.

Splits the input into batches, sorts each batch in memory, and spills it as a
run through the run store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from itertools import islice
from typing import TYPE_CHECKING, Any

from ..core.errors import ConfigError, InputError
from ..core.types import U64_MAX, Value

if TYPE_CHECKING:
    from ..interfaces.store import RunStore

logger = logging.getLogger(__name__)

_END = object()


@dataclass
class ChunkResult:
    """Outcome of chunk production.

    Attributes:
        runs: Sealed runs in creation order
        tail: Final batch kept in memory, sorted, or None
        values: Total number of input values
    """

    runs: list[Any] = field(default_factory=list)
    tail: list[Value] | None = None
    values: int = 0


def check_value(value: Any) -> Value:
    """Return value unchanged if it is an unsigned 64-bit integer."""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise InputError(f"Value {value!r} is not an unsigned 64-bit integer")
    return value


class ChunkProducer:
    """Produce sorted runs from an unsorted value stream.

    Args:
        store: Run store that owns the produced runs
        batch_size: Maximum number of values sorted in memory at once
        keep_tail_in_memory: Return the last batch instead of spilling it

    Invariants:
        - Every run holds at most batch_size values, sorted ascending
        - The runs plus the tail hold exactly the input multiset
        - Empty input produces no runs
        - A run is sealed before it is returned
    """

    def __init__(self, store: RunStore, batch_size: int, keep_tail_in_memory: bool = False):
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
            raise ConfigError(f"batch_size must be a positive integer, got {batch_size!r}")
        self.store = store
        self.batch_size = batch_size
        self.keep_tail_in_memory = keep_tail_in_memory

    def produce(self, values: Iterable[Value]) -> ChunkResult:
        """Consume the whole input and return the produced runs."""
        result = ChunkResult()
        it = self._validated(values)

        # One value of lookahead tells whether a batch is the last one
        lookahead = next(it, _END)
        while lookahead is not _END:
            batch = [lookahead]
            batch.extend(islice(it, self.batch_size - 1))
            lookahead = next(it, _END)

            batch.sort()
            result.values += len(batch)

            if self.keep_tail_in_memory and lookahead is _END:
                result.tail = batch
                logger.debug(f"Keeping final batch of {len(batch)} values in memory")
                break

            result.runs.append(self._spill(batch))

        logger.info(
            f"Produced {len(result.runs)} runs from {result.values} values "
            f"(batch_size={self.batch_size})"
        )
        return result

    def _spill(self, batch: list[Value]) -> Any:
        """Write a sorted batch to a new run and seal it."""
        run = self.store.create_run()
        self.store.write_many(run, batch)
        self.store.seal_and_reopen_for_read(run)
        logger.debug(f"Spilled batch of {len(batch)} values to run {run.run_id}")
        return run

    @staticmethod
    def _validated(values: Iterable[Value]) -> Iterator[Value]:
        for value in values:
            yield check_value(value)
