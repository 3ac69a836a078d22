"""Growth engine: batched random growth with cooperative cancellation.

A run grows the pattern in batches of at most ``batch_size`` cells. After
each batch it publishes a ``ProgressSnapshot`` and then waits on its cancel
event for ``yield_interval_s`` before the next batch. That wait is the only
suspension point, so a cancel request takes effect at the next batch
boundary and is answered with exactly one terminal snapshot.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterator, Optional

import numpy as np

from Growth.config import GrowthConfig, RunPolicy, validate_batch_size, validate_pick_count
from Growth.snapshot import ProgressSnapshot
from Growth.state import GrowthState

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressSnapshot], object]


class GrowthRun:
    """Run state plus the batch step that advances it."""

    def __init__(
        self,
        pick_count: int,
        batch_size: int,
        rng: np.random.Generator,
    ) -> None:
        self.pick_count = validate_pick_count(pick_count)
        self.batch_size = validate_batch_size(batch_size)
        self.rng = rng
        self.state = GrowthState(pick_count=self.pick_count)
        self.batches = 0

    @property
    def done(self) -> bool:
        return self.state.done

    def snapshot(self, terminal: bool = False) -> ProgressSnapshot:
        return ProgressSnapshot.from_state(self.state, terminal=terminal)

    def step_batch(self) -> ProgressSnapshot:
        """Grow one batch and return the resulting snapshot."""
        grown = self.state.grow_batch(self.batch_size, self.rng)
        self.batches += 1
        snapshot = self.snapshot()
        logger.debug(
            "batch %d: grew=%d occupied=%d frontier=%d",
            self.batches,
            grown,
            snapshot.occupied_count,
            snapshot.frontier_count,
        )
        return snapshot

    def iter_snapshots(self) -> Iterator[ProgressSnapshot]:
        """Yield one snapshot per batch in the caller's thread until done."""
        while True:
            snapshot = self.step_batch()
            yield snapshot
            if snapshot.done:
                return


class RunHandle:
    """Cancellation handle for a run executing on its own thread.

    Calling the handle requests cancellation. It is idempotent and does
    nothing once the run has published its terminal snapshot.
    """

    def __init__(
        self,
        run: GrowthRun,
        on_progress: ProgressCallback,
        yield_interval_s: float,
        predecessor: Optional["RunHandle"] = None,
    ) -> None:
        self.run = run
        self._on_progress = on_progress
        self._yield_interval_s = float(yield_interval_s)
        self._predecessor = predecessor
        self._cancel_event = threading.Event()
        self._lock = threading.RLock()
        self._finished = False
        self._error: BaseException | None = None
        self._thread = threading.Thread(target=self._work, name="growth-run", daemon=True)

    def __call__(self) -> None:
        self.cancel()

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def active(self) -> bool:
        return not self.finished and self._error is None

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        with self._lock:
            if self._finished or self._cancel_event.is_set():
                return
            self._cancel_event.set()
        logger.info(
            "Cancel requested at %d/%d cells",
            len(self.run.state.occupied),
            self.run.pick_count,
        )

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the run thread; re-raise any error raised inside the run.

        Returns True when the thread has exited.
        """
        self._thread.join(timeout)
        if self._error is not None:
            raise RuntimeError("Growth run failed") from self._error
        return not self._thread.is_alive()

    def _publish(self, snapshot: ProgressSnapshot) -> bool:
        """Deliver a snapshot; return True while more batches should follow."""
        with self._lock:
            if self._finished:
                return False
            if self._cancel_event.is_set() and not snapshot.done:
                snapshot = self.run.snapshot(terminal=True)
            if snapshot.done:
                self._finished = True
            self._on_progress(snapshot)
            return not snapshot.done

    def _wait_for_predecessor(self) -> None:
        """Block until the previous run exits or this run is cancelled."""
        predecessor = self._predecessor
        if predecessor is None:
            return
        interval = self._yield_interval_s or 0.01
        while predecessor._thread.is_alive() and not self._cancel_event.wait(interval):
            pass
        self._predecessor = None

    def _work(self) -> None:
        try:
            self._wait_for_predecessor()
            while not self._cancel_event.is_set():
                if not self._publish(self.run.step_batch()):
                    break
                if self._cancel_event.wait(self._yield_interval_s):
                    break
            self._publish(self.run.snapshot(terminal=True))
            if not self.run.done:
                logger.info(
                    "Growth run stopped at %d/%d cells",
                    len(self.run.state.occupied),
                    self.run.pick_count,
                )
            else:
                logger.info(
                    "Growth run finished: %d cells in %d batches",
                    self.run.pick_count,
                    self.run.batches,
                )
        except Exception as exc:
            logger.exception("Growth run failed")
            with self._lock:
                self._error = exc
                self._finished = True


class GrowthEngine:
    """Starts growth runs and enforces the configured concurrent-run policy.

    The engine keeps a single slot for the active run. Each run draws from
    its own generator spawned from the engine's seed sequence.
    """

    def __init__(self, config: GrowthConfig | None = None) -> None:
        self.config = config if config is not None else GrowthConfig()
        self._seed_seq = np.random.SeedSequence(self.config.random_seed)
        self._lock = threading.Lock()
        self._active: RunHandle | None = None

    @property
    def active_run(self) -> RunHandle | None:
        with self._lock:
            if self._active is not None and self._active.active:
                return self._active
            return None

    def spawn_rng(self) -> np.random.Generator:
        return np.random.default_rng(self._seed_seq.spawn(1)[0])

    def start(self, pick_count: int, on_progress: ProgressCallback) -> RunHandle:
        """Start a run growing ``pick_count`` cells; return its cancel handle."""
        validate_pick_count(pick_count)
        policy = self.config.run_policy
        with self._lock:
            previous = self._active if self._active is not None and self._active.active else None
            predecessor = None
            if previous is not None:
                if policy is RunPolicy.REJECT:
                    raise RuntimeError("growth run already active")
                predecessor = previous
            run = GrowthRun(pick_count, self.config.batch_size, self.spawn_rng())
            handle = RunHandle(
                run,
                on_progress,
                self.config.yield_interval_s,
                predecessor=predecessor,
            )
            self._active = handle
        logger.info(
            "Starting growth run: pick_count=%d batch_size=%d policy=%s waiting=%s",
            pick_count,
            self.config.batch_size,
            policy.value,
            predecessor is not None,
        )
        # handle locks are never taken while the engine lock is held
        if predecessor is not None and policy is RunPolicy.REPLACE:
            predecessor.cancel()
        handle.start()
        return handle

    def cancel(self) -> None:
        """Cancel the newest run and every run it is still waiting behind."""
        with self._lock:
            handle = self._active
        while handle is not None:
            previous = handle._predecessor
            handle.cancel()
            handle = previous


def generate(
    pick_count: int,
    batch_size: int = 1000,
    random_seed: int | None = None,
) -> ProgressSnapshot:
    """Grow a full pattern synchronously and return its final snapshot."""
    run = GrowthRun(pick_count, batch_size, np.random.default_rng(random_seed))
    last = None
    for last in run.iter_snapshots():
        logger.debug("generate: %.1f%%", last.percent or 100.0)
    return last
