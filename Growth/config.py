"""Growth run configuration.

Defines the batch size that bounds the work done between yields, the pause
between batches, the seed, and what happens when a run is started while
another one is still active.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RunPolicy(str, Enum):
    """Behaviour of ``GrowthEngine.start`` while a run is active."""

    REJECT = "reject"
    REPLACE = "replace"
    QUEUE = "queue"


DEFAULT_BATCH_SIZE = 1000
DEFAULT_YIELD_INTERVAL_S = 0.001


def validate_pick_count(pick_count: object) -> int:
    """Return ``pick_count`` if it is a positive integer, else raise ValueError."""
    if isinstance(pick_count, bool) or not isinstance(pick_count, int):
        raise ValueError(f"pick_count must be an integer; got {pick_count!r}")
    if pick_count < 1:
        raise ValueError(f"pick_count must be positive; got {pick_count}")
    return pick_count


def validate_batch_size(batch_size: object) -> int:
    """Return ``batch_size`` if it is a positive integer, else raise ValueError."""
    if isinstance(batch_size, bool) or not isinstance(batch_size, int):
        raise ValueError(f"batch_size must be an integer; got {batch_size!r}")
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive; got {batch_size}")
    return batch_size


@dataclass(frozen=True)
class GrowthConfig:
    """Configuration parameters for lattice growth runs."""
    pick_count: int = 1000
    batch_size: int = DEFAULT_BATCH_SIZE
    yield_interval_s: float = DEFAULT_YIELD_INTERVAL_S
    random_seed: int | None = None
    run_policy: RunPolicy = RunPolicy.REJECT
    out_path: str | None = None

    def __post_init__(self) -> None:
        validate_pick_count(self.pick_count)
        validate_batch_size(self.batch_size)
        if self.yield_interval_s < 0:
            raise ValueError("yield_interval_s must be non-negative")
        if self.random_seed is not None:
            if isinstance(self.random_seed, bool) or not isinstance(self.random_seed, int):
                raise ValueError(f"random_seed must be an integer; got {self.random_seed!r}")
            if self.random_seed < 0:
                raise ValueError("random_seed must be non-negative")
        try:
            policy = RunPolicy(self.run_policy)
        except ValueError:
            raise ValueError("run_policy must be 'reject', 'replace', or 'queue'") from None
        object.__setattr__(self, "run_policy", policy)
