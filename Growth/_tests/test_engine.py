"""Tests for batched growth runs and the threaded engine."""

from __future__ import annotations

import gc
import threading
import time
import weakref

import numpy as np
import pytest

from Growth.config import GrowthConfig
from Growth.engine import GrowthEngine, GrowthRun, generate
from Growth.lattice import ORIGIN


class Recorder:
    """Thread-safe progress callback collecting snapshots."""

    def __init__(self, tag: str | None = None, log: list | None = None) -> None:
        self.tag = tag
        self.snapshots: list = []
        self.log = log
        self._lock = threading.Lock()

    def __call__(self, snapshot) -> None:
        with self._lock:
            self.snapshots.append(snapshot)
            if self.log is not None:
                self.log.append((self.tag, snapshot))

    @property
    def terminal(self) -> list:
        return [s for s in self.snapshots if s.done]


def _run(pick_count: int, batch_size: int = 1000, seed: int = 0) -> GrowthRun:
    return GrowthRun(pick_count, batch_size, np.random.default_rng(seed))


# -----------------------------------------------------------------------------
# Cooperative batch loop
# -----------------------------------------------------------------------------

def test_single_pick_finishes_in_first_batch():
    snapshots = list(_run(1).iter_snapshots())
    assert len(snapshots) == 1
    snapshot = snapshots[0]
    assert snapshot.percent is None
    assert snapshot.occupied == (ORIGIN,)
    assert snapshot.frontier == ((1, 0), (-1, 0))


def test_two_picks_leave_three_frontier_cells():
    snapshot = generate(2, random_seed=11)
    assert snapshot.done
    assert len(snapshot.occupied) == 2
    assert snapshot.occupied[0] == ORIGIN
    grown = snapshot.occupied[1]
    assert grown in {(1, 0), (-1, 0)}
    assert len(snapshot.frontier) == 3
    assert set(snapshot.frontier) == {(-grown[0], 0), (grown[0], 1), (grown[0], -1)}


def test_batches_grow_by_batch_size_until_remaining():
    snapshots = list(_run(2500).iter_snapshots())
    assert [s.occupied_count for s in snapshots] == [1001, 2001, 2500]
    assert snapshots[0].percent == pytest.approx(1001 / 2500 * 100)
    assert snapshots[1].percent == pytest.approx(2001 / 2500 * 100)
    assert snapshots[2].percent is None


def test_origin_stays_occupied_and_sets_stay_disjoint():
    for snapshot in _run(3000, batch_size=500, seed=5).iter_snapshots():
        assert ORIGIN in snapshot.occupied
        assert set(snapshot.occupied).isdisjoint(snapshot.frontier)


def test_same_seed_reproduces_pattern():
    assert generate(500, random_seed=9) == generate(500, random_seed=9)


@pytest.mark.parametrize("value", [0, -1, 1.5, True])
def test_run_rejects_invalid_pick_count(value):
    with pytest.raises(ValueError):
        _run(value)


@pytest.mark.parametrize("batch_size", [0, -10, 2.5, True])
def test_run_rejects_invalid_batch_size(batch_size):
    with pytest.raises(ValueError, match="batch_size"):
        _run(10, batch_size=batch_size)


# -----------------------------------------------------------------------------
# Threaded engine
# -----------------------------------------------------------------------------

def test_engine_runs_to_completion():
    engine = GrowthEngine(GrowthConfig(random_seed=1, yield_interval_s=0.0))
    recorder = Recorder()
    handle = engine.start(3500, recorder)
    assert handle.join(timeout=10)
    sizes = [s.occupied_count for s in recorder.snapshots]
    assert sizes == [1001, 2001, 3001, 3500]
    assert len(recorder.terminal) == 1
    assert recorder.snapshots[-1].done
    assert handle.finished
    assert engine.active_run is None


@pytest.mark.parametrize("value", [0, -5, 2.0, "3"])
def test_engine_rejects_invalid_pick_count_before_starting(value):
    engine = GrowthEngine()
    recorder = Recorder()
    with pytest.raises(ValueError):
        engine.start(value, recorder)
    assert engine.active_run is None
    assert recorder.snapshots == []


def test_cancel_emits_single_terminal_snapshot():
    engine = GrowthEngine(GrowthConfig(yield_interval_s=0.05))
    recorder = Recorder()
    pick_count = 1_000_000
    handle = engine.start(pick_count, recorder)
    handle()
    assert handle.join(timeout=10)
    assert len(recorder.terminal) == 1
    final = recorder.snapshots[-1]
    assert final.done
    assert final.occupied_count < pick_count
    assert handle.cancelled
    assert all(not s.done for s in recorder.snapshots[:-1])


def test_cancel_is_idempotent_and_noop_after_completion():
    engine = GrowthEngine(GrowthConfig(yield_interval_s=0.0))
    recorder = Recorder()
    handle = engine.start(10, recorder)
    assert handle.join(timeout=10)
    handle()
    handle()
    handle.cancel()
    assert len(recorder.snapshots) == 1
    assert recorder.snapshots[0].occupied_count == 10
    assert not handle.cancelled


def test_reject_policy_refuses_second_run():
    engine = GrowthEngine(GrowthConfig(yield_interval_s=0.05))
    first = engine.start(1_000_000, Recorder())
    try:
        with pytest.raises(RuntimeError, match="already active"):
            engine.start(10, Recorder())
    finally:
        first()
        first.join(timeout=10)
    assert engine.active_run is None


def test_replace_policy_cancels_active_run():
    engine = GrowthEngine(GrowthConfig(yield_interval_s=0.05, run_policy="replace"))
    log: list = []
    first_rec = Recorder("first", log)
    second_rec = Recorder("second", log)
    first = engine.start(1_000_000, first_rec)
    second = engine.start(10, second_rec)
    assert second.join(timeout=10)
    assert first.join(timeout=10)

    assert first.cancelled
    assert first_rec.snapshots[-1].done
    assert first_rec.snapshots[-1].occupied_count < 1_000_000
    assert second_rec.snapshots[-1].occupied_count == 10
    tags = [tag for tag, _ in log]
    assert tags.index("second") > max(i for i, tag in enumerate(tags) if tag == "first")


def test_queue_policy_waits_for_active_run():
    engine = GrowthEngine(GrowthConfig(yield_interval_s=0.01, run_policy="queue"))
    log: list = []
    first_rec = Recorder("first", log)
    second_rec = Recorder("second", log)
    first = engine.start(3000, first_rec)
    second = engine.start(5, second_rec)
    assert second.join(timeout=10)
    assert first.join(timeout=10)

    assert first_rec.snapshots[-1].occupied_count == 3000
    assert second_rec.snapshots[-1].occupied_count == 5
    assert [tag for tag, _ in log] == ["first"] * len(first_rec.snapshots) + ["second"]


def test_engine_cancel_without_active_run_is_noop():
    engine = GrowthEngine()
    engine.cancel()
    assert engine.active_run is None


def test_callback_error_surfaces_on_join():
    engine = GrowthEngine(GrowthConfig(yield_interval_s=0.0))

    def explode(snapshot) -> None:
        raise KeyError("consumer failed")

    handle = engine.start(5, explode)
    with pytest.raises(RuntimeError, match="Growth run failed"):
        handle.join(timeout=10)
    assert engine.active_run is None


def test_replaced_runs_are_released_after_they_finish():
    engine = GrowthEngine(GrowthConfig(yield_interval_s=0.01, run_policy="replace"))
    handles = [engine.start(1_000_000, Recorder()) for _ in range(4)]
    handles[-1]()
    for handle in handles:
        assert handle.join(timeout=10)
    earlier_runs = [weakref.ref(handle.run) for handle in handles[:-1]]
    del handle, handles
    gc.collect()
    assert [ref() for ref in earlier_runs] == [None, None, None]


def test_cancelled_queued_run_stops_without_waiting_for_active_run():
    engine = GrowthEngine(GrowthConfig(yield_interval_s=0.01, run_policy="queue"))
    first = engine.start(1_000_000, Recorder())
    recorder = Recorder()
    queued = engine.start(5, recorder)
    try:
        queued()
        assert queued.join(timeout=2)
        assert len(recorder.snapshots) == 1
        assert recorder.snapshots[0].done
        assert recorder.snapshots[0].occupied == (ORIGIN,)
        assert first.active
    finally:
        first()
        first.join(timeout=10)


def test_engine_cancel_stops_every_queued_run():
    engine = GrowthEngine(GrowthConfig(yield_interval_s=0.01, run_policy="queue"))
    first_rec = Recorder()
    second_rec = Recorder()
    first = engine.start(1_000_000, first_rec)
    second = engine.start(1_000_000, second_rec)
    engine.cancel()
    assert first.join(timeout=10)
    assert second.join(timeout=10)
    assert first.cancelled and second.cancelled
    assert first_rec.snapshots[-1].occupied_count < 1_000_000
    assert len(second_rec.terminal) == 1
    assert engine.active_run is None


def test_callback_reading_engine_does_not_block_concurrent_start():
    engine = GrowthEngine(GrowthConfig(yield_interval_s=0.05, run_policy="replace"))
    entered = threading.Event()
    release = threading.Event()
    seen: list = []

    def on_progress(snapshot) -> None:
        if not entered.is_set():
            entered.set()
            release.wait(timeout=5)
            seen.append(engine.active_run)

    first = engine.start(1_000_000, on_progress)
    assert entered.wait(timeout=5)
    second_rec = Recorder()
    starter = threading.Thread(target=lambda: engine.start(5, second_rec), daemon=True)
    starter.start()
    time.sleep(0.2)
    release.set()
    starter.join(timeout=5)
    assert not starter.is_alive()
    assert first.join(timeout=10)
    assert len(seen) == 1
    deadline = time.time() + 10
    while not second_rec.terminal and time.time() < deadline:
        time.sleep(0.01)
    assert second_rec.snapshots[-1].occupied_count == 5
