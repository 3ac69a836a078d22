"""Mutable run state for lattice growth.

Holds the occupied structure and its frontier. Both are indexed sets so a
uniformly random frontier cell can be drawn and removed in O(1). No
scheduling lives here; the engine drives ``grow`` in batches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

import numpy as np

from Growth.lattice import ORIGIN, Cell, get_tips


class CellSet:
    """Insertion-ordered set of cells supporting O(1) removal by index."""

    def __init__(self, cells: Iterable[Cell] = ()) -> None:
        self._cells: list[Cell] = []
        self._index: dict[Cell, int] = {}
        for cell in cells:
            self.add(cell)

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, cell: object) -> bool:
        return cell in self._index

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def add(self, cell: Cell) -> None:
        if cell in self._index:
            return
        self._index[cell] = len(self._cells)
        self._cells.append(cell)

    def discard(self, cell: Cell) -> None:
        idx = self._index.get(cell)
        if idx is not None:
            self.pop_at(idx)

    def pop_at(self, idx: int) -> Cell:
        """Remove and return the cell at ``idx`` by swapping in the last cell."""
        cell = self._cells[idx]
        last = self._cells.pop()
        del self._index[cell]
        if last != cell:
            self._cells[idx] = last
            self._index[last] = idx
        return cell

    def to_tuple(self) -> tuple[Cell, ...]:
        return tuple(self._cells)


@dataclass
class GrowthState:
    """Occupied cells, their frontier, and the target size of a run."""
    pick_count: int
    occupied: CellSet = field(default_factory=lambda: CellSet([ORIGIN]))
    frontier: CellSet = field(default_factory=lambda: CellSet(get_tips(ORIGIN)))

    @property
    def remaining(self) -> int:
        return self.pick_count - len(self.occupied)

    @property
    def done(self) -> bool:
        return len(self.occupied) >= self.pick_count

    def grow(self, rng: np.random.Generator) -> Cell:
        """Occupy one uniformly random frontier cell and update the frontier.

        A tip already in the frontier is absorbed (removed without being
        occupied); a free tip joins the frontier; an occupied tip is ignored.
        """
        if not self.frontier:
            raise RuntimeError(
                f"Frontier exhausted at {len(self.occupied)} of {self.pick_count} cells"
            )
        cell = self.frontier.pop_at(int(rng.integers(len(self.frontier))))
        self.occupied.add(cell)
        for tip in get_tips(cell):
            if tip in self.frontier:
                self.frontier.discard(tip)
            elif tip not in self.occupied:
                self.frontier.add(tip)
        return cell

    def grow_batch(self, batch_size: int, rng: np.random.Generator) -> int:
        """Grow up to ``batch_size`` cells without overshooting the target."""
        count = max(0, min(batch_size, self.remaining))
        for _ in range(count):
            self.grow(rng)
        return count
