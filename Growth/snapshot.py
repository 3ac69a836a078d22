"""Immutable progress snapshots handed to the consumer after each batch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from Growth.lattice import Cell
from Growth.state import GrowthState


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned extent of a pattern in lattice coordinates."""
    min_x: int
    max_x: int
    min_y: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y


@dataclass(frozen=True)
class ProgressSnapshot:
    """Copy of the occupied cells and frontier at a batch boundary.

    ``percent`` is the share of the target reached, or None once the run is
    finished or stopped. The two cases are deliberately indistinguishable.
    """
    percent: Optional[float]
    occupied: tuple[Cell, ...]
    frontier: tuple[Cell, ...]

    @classmethod
    def from_state(cls, state: GrowthState, terminal: bool = False) -> "ProgressSnapshot":
        """Copy ``state``; the percent is None when terminal or done."""
        if terminal or state.done:
            percent = None
        else:
            percent = len(state.occupied) / state.pick_count * 100
        return cls(
            percent=percent,
            occupied=state.occupied.to_tuple(),
            frontier=state.frontier.to_tuple(),
        )

    @property
    def done(self) -> bool:
        return self.percent is None

    @property
    def occupied_count(self) -> int:
        return len(self.occupied)

    @property
    def frontier_count(self) -> int:
        return len(self.frontier)

    @property
    def frontier_ratio(self) -> float:
        """Frontier size relative to the number of occupied cells."""
        if not self.occupied:
            return 0.0
        return len(self.frontier) / len(self.occupied)

    def bounding_box(self) -> BoundingBox:
        """Extent of the occupied cells and frontier together."""
        cells = np.asarray(self.occupied + self.frontier, dtype=np.int64).reshape(-1, 2)
        if cells.size == 0:
            return BoundingBox(0, 0, 0, 0)
        mins = cells.min(axis=0)
        maxs = cells.max(axis=0)
        return BoundingBox(
            min_x=int(mins[0]),
            max_x=int(maxs[0]),
            min_y=int(mins[1]),
            max_y=int(maxs[1]),
        )

    def as_arrays(self) -> tuple[np.ndarray, np.ndarray]:
        """Return occupied and frontier cells as (n, 2) int64 arrays."""
        occupied = np.asarray(self.occupied, dtype=np.int64).reshape(-1, 2)
        frontier = np.asarray(self.frontier, dtype=np.int64).reshape(-1, 2)
        return occupied, frontier
