"""K-way merge of sorted runs.

Streams the union of individually sorted runs in ascending order.
"""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..core.types import RunId, Value
    from ..interfaces.sink import ValueSink
    from ..interfaces.source import RunSource
    from ..interfaces.store import RunStore

logger = logging.getLogger(__name__)


class KWayMerger:
    """Heap-based merger over run sources.

    Args:
        max_open_runs: Fan-in limit for reduce(); None means unlimited

    Invariants:
        - The heap holds at most one (value, run_id) entry per open source
        - run_id only breaks ties between equal values
        - Exhausted sources are closed and never re-inserted
    """

    def __init__(self, max_open_runs: int | None = None):
        self.max_open_runs = max_open_runs
        self.passes = 0  # intermediate passes run by reduce()

    def merge(self, sources: Sequence[RunSource]) -> Iterator[Value]:
        """Yield every value of every source in ascending order.

        Runs in O(n log k) comparisons for n values across k sources.
        """
        by_id: dict[RunId, RunSource] = {}
        for source in sources:
            if source.run_id in by_id:
                raise ValueError(f"Duplicate run id {source.run_id} in merge")
            by_id[source.run_id] = source

        if not by_id:
            return

        # Build heap of (head value, run_id)
        heap: list[tuple[Value, RunId]] = []
        for run_id, source in by_id.items():
            if source.has_next():
                heap.append((source.peek(), run_id))
            else:
                source.close()
        heapq.heapify(heap)

        logger.debug(f"Merging {len(heap)} non-empty of {len(by_id)} runs")

        while heap:
            value, run_id = heap[0]
            yield value

            # Advance the source that supplied the minimum
            source = by_id[run_id]
            source.advance()
            if source.has_next():
                heapq.heapreplace(heap, (source.peek(), run_id))
            else:
                heapq.heappop(heap)
                source.close()
                logger.debug(f"Run {run_id} fully consumed")

    def merge_into(self, sources: Sequence[RunSource], sink: ValueSink) -> int:
        """Stream the merge of sources into sink; return the number of values written."""
        count = 0
        for value in self.merge(sources):
            sink.write(value)
            count += 1
        return count

    def reduce(self, store: RunStore, runs: Sequence[Any], reserved: int = 0) -> list[Any]:
        """Merge runs in intermediate passes until they fit the fan-in limit.

        Consecutive groups of at most max_open_runs runs are merged into new
        runs of the same store; consumed runs are released right away.

        Args:
            store: Store owning the runs
            runs: Sealed runs, in id order
            reserved: Sources merged alongside the returned runs (e.g. an
                in-memory tail) that count against the limit

        Returns:
            Sealed runs few enough for a single final merge
        """
        runs = list(runs)
        if self.max_open_runs is None:
            return runs

        limit = self.max_open_runs - reserved
        if limit < 1:
            raise ValueError(
                f"max_open_runs={self.max_open_runs} leaves no room for {reserved} reserved sources"
            )

        while len(runs) > limit:
            self.passes += 1
            logger.info(f"Intermediate merge pass over {len(runs)} runs (fan-in {self.max_open_runs})")
            merged: list[Any] = []
            for start in range(0, len(runs), self.max_open_runs):
                group = runs[start:start + self.max_open_runs]
                if len(group) == 1:
                    merged.append(group[0])
                    continue

                out = store.create_run()
                store.write_many(out, self.merge([store.open_source(run) for run in group]))
                store.seal_and_reopen_for_read(out)
                for run in group:
                    store.release(run)
                merged.append(out)
            runs = merged

        return runs
