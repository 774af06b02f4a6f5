"""Unit tests for the k-way merger."""

import pytest

from extsort.components.merger import KWayMerger
from extsort.components.sources import MemoryRunSource


class TrackingSource(MemoryRunSource):
    """Memory source that records close() calls."""

    def __init__(self, run_id, values):
        super().__init__(run_id, values)
        self.closed = False

    def close(self):
        self.closed = True
        super().close()


def sources_of(*runs):
    return [MemoryRunSource(i, values) for i, values in enumerate(runs)]


def test_merge_interleaved_runs():
    """Test merging runs whose values interleave."""
    merger = KWayMerger()
    merged = list(merger.merge(sources_of([1, 4, 7], [2, 5, 8], [3, 6, 9])))

    assert merged == [1, 2, 3, 4, 5, 6, 7, 8, 9]


def test_merge_no_sources():
    """Test that zero runs produce an empty stream."""
    merger = KWayMerger()

    assert list(merger.merge([])) == []
    assert merger.passes == 0


def test_merge_single_source():
    """Test that one run passes through unchanged."""
    assert list(KWayMerger().merge(sources_of([1, 2, 2, 3]))) == [1, 2, 2, 3]


def test_merge_skips_empty_runs():
    """Test that empty runs do not enter the frontier."""
    merged = list(KWayMerger().merge(sources_of([], [3], [], [1, 2])))

    assert merged == [1, 2, 3]


def test_merge_keeps_duplicates_across_runs():
    """Test that equal values from different runs are all emitted."""
    merged = list(KWayMerger().merge(sources_of([5, 5], [3, 5], [1])))

    assert merged == [1, 3, 5, 5, 5]


def test_merge_uneven_lengths():
    """Test runs of very different lengths."""
    long_run = list(range(0, 1000, 2))
    merged = list(KWayMerger().merge(sources_of(long_run, [501], [999, 1000])))

    assert merged == sorted(long_run + [501, 999, 1000])


def test_merge_closes_exhausted_sources():
    """Test that every source is closed once drained."""
    sources = [TrackingSource(0, [1, 3]), TrackingSource(1, []), TrackingSource(2, [2])]

    assert list(KWayMerger().merge(sources)) == [1, 2, 3]
    assert all(source.closed for source in sources)


def test_merge_is_lazy():
    """Test that the merge only reads one head per run before yielding."""
    sources = [TrackingSource(0, [1, 2, 3]), TrackingSource(1, [10, 11])]
    it = KWayMerger().merge(sources)

    assert next(it) == 1
    assert next(it) == 2
    assert not sources[0].closed
    assert not sources[1].closed


def test_merge_rejects_duplicate_run_ids():
    """Test that run ids must be unique tie-breakers."""
    sources = [MemoryRunSource(0, [1]), MemoryRunSource(0, [2])]

    with pytest.raises(ValueError, match="Duplicate run id"):
        list(KWayMerger().merge(sources))


def test_merge_equal_values_order_by_run_id():
    """Test that ties between runs resolve by run id."""
    order = []

    class Recording(MemoryRunSource):
        def advance(self):
            order.append(self.run_id)
            super().advance()

    sources = [Recording(2, [7]), Recording(0, [7]), Recording(1, [7])]
    assert list(KWayMerger().merge(sources)) == [7, 7, 7]
    assert order == [0, 1, 2]


def test_reduce_without_limit_returns_runs(fake_store):
    """Test that reduce is a no-op without a fan-in limit."""
    runs = []
    for values in ([2], [1]):
        run = fake_store.create_run()
        fake_store.write_many(run, values)
        fake_store.seal_and_reopen_for_read(run)
        runs.append(run)

    merger = KWayMerger()
    assert merger.reduce(fake_store, runs) == runs
    assert merger.passes == 0


def test_reduce_merges_groups(fake_store):
    """Test intermediate passes bring the run count under the limit."""
    runs = []
    for i in range(7):
        run = fake_store.create_run()
        fake_store.write_many(run, [i, i + 10, i + 20])
        fake_store.seal_and_reopen_for_read(run)
        runs.append(run)

    merger = KWayMerger(max_open_runs=3)
    reduced = merger.reduce(fake_store, runs)

    assert len(reduced) <= 3
    assert merger.passes == 1
    # Groups [0,1,2] and [3,4,5] are merged; run 6 is carried over
    assert fake_store.released == [0, 1, 2, 3, 4, 5]
    assert reduced[0].values == sorted(v for i in range(3) for v in (i, i + 10, i + 20))
    assert reduced[-1].run_id == 6

    final = list(merger.merge([fake_store.open_source(run) for run in reduced]))
    assert final == sorted(v for i in range(7) for v in (i, i + 10, i + 20))


def test_reduce_multiple_passes(fake_store):
    """Test that many runs need more than one intermediate pass."""
    runs = []
    for i in range(9):
        run = fake_store.create_run()
        fake_store.write_many(run, [9 - i])
        fake_store.seal_and_reopen_for_read(run)
        runs.append(run)

    merger = KWayMerger(max_open_runs=2)
    reduced = merger.reduce(fake_store, runs)

    # 9 -> 5 -> 3 -> 2
    assert len(reduced) == 2
    assert merger.passes == 3
    final = list(merger.merge([fake_store.open_source(run) for run in reduced]))
    assert final == list(range(1, 10))


def test_reduce_reserves_room_for_tail(fake_store):
    """Test that reserved sources count against the fan-in limit."""
    runs = []
    for i in range(3):
        run = fake_store.create_run()
        fake_store.write_many(run, [i])
        fake_store.seal_and_reopen_for_read(run)
        runs.append(run)

    reduced = KWayMerger(max_open_runs=3).reduce(fake_store, runs, reserved=1)

    assert len(reduced) <= 2


def test_reduce_rejects_impossible_reservation(fake_store):
    """Test that the limit must leave room for at least one run."""
    with pytest.raises(ValueError, match="reserved"):
        KWayMerger(max_open_runs=2).reduce(fake_store, [], reserved=2)


def test_merge_into_sink():
    """Test streaming the merge into a ValueSink."""

    class ListSink:
        def __init__(self):
            self.values = []

        def write(self, value):
            self.values.append(value)

    sink = ListSink()
    count = KWayMerger().merge_into(sources_of([2, 9], [1, 3]), sink)

    assert count == 4
    assert sink.values == [1, 2, 3, 9]
