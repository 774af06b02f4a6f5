"""Shared test helpers."""

from __future__ import annotations

import pytest

from extsort.components.sources import MemoryRunSource


class FakeRun:
    """In-memory stand-in for a run file."""

    def __init__(self, run_id: int):
        self.run_id = run_id
        self.values: list[int] = []
        self.sealed = False
        self.pos = 0


class FakeRunStore:
    """In-memory implementation of the RunStore protocol."""

    def __init__(self):
        self.runs: list[FakeRun] = []
        self.released: list[int] = []
        self.destroy_calls = 0
        self._next_id = 0

    def create_run(self) -> FakeRun:
        run = FakeRun(self._next_id)
        self._next_id += 1
        self.runs.append(run)
        return run

    def write(self, run: FakeRun, value: int) -> None:
        assert not run.sealed, "write after seal"
        run.values.append(value)

    def write_many(self, run: FakeRun, values) -> int:
        count = 0
        for value in values:
            self.write(run, value)
            count += 1
        return count

    def seal_and_reopen_for_read(self, run: FakeRun) -> None:
        run.sealed = True

    def read_next(self, run: FakeRun) -> int | None:
        assert run.sealed, "read before seal"
        if run.pos >= len(run.values):
            return None
        run.pos += 1
        return run.values[run.pos - 1]

    def open_source(self, run: FakeRun) -> MemoryRunSource:
        assert run.sealed, "source over unsealed run"
        return MemoryRunSource(run.run_id, run.values)

    def release(self, run: FakeRun) -> None:
        self.runs.remove(run)
        self.released.append(run.run_id)

    def destroy_all(self) -> list:
        self.destroy_calls += 1
        self.runs.clear()
        return []


@pytest.fixture
def fake_store():
    """Create an empty in-memory run store."""
    return FakeRunStore()
