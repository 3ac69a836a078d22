"""Diagonal lattice geometry.

Cells are integer (x, y) pairs on a grid rotated by 45 degrees. A cell's
orientation is fixed by its position: horizontal when (x + y) is even,
vertical otherwise. Each cell connects to exactly two "tips", which makes
growth branch like a tree instead of filling a blob.
"""

from __future__ import annotations

from typing import Tuple

Cell = Tuple[int, int]

ORIGIN: Cell = (0, 0)


def is_horizontal(cell: Cell) -> bool:
    """Return True when the cell lies along the x axis."""
    x, y = cell
    return (x + y) % 2 == 0


def get_tips(cell: Cell) -> tuple[Cell, Cell]:
    """Return the two lattice neighbours reachable from ``cell``.

    Horizontal cells reach (x+1, y) and (x-1, y); vertical cells reach
    (x, y+1) and (x, y-1). The order is stable and determines the order of
    the initial frontier.
    """
    x, y = cell
    if is_horizontal(cell):
        return (x + 1, y), (x - 1, y)
    return (x, y + 1), (x, y - 1)
