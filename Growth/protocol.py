"""Messages exchanged between a driver and a growth worker.

Each message carries an ``EventType`` tag so dispatch is a plain comparison
on an enum rather than on free-form strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from Growth.lattice import Cell
from Growth.snapshot import ProgressSnapshot


class EventType(Enum):
    GENERATE = "generate"
    PROGRESS = "progress"
    CANCEL = "cancel"
    ERROR = "error"


@dataclass(frozen=True)
class GenerateEvent:
    """Request a new run growing ``pick_count`` cells."""
    pick_count: int
    type: EventType = field(default=EventType.GENERATE, init=False)


@dataclass(frozen=True)
class CancelEvent:
    """Request cancellation of the current run."""
    type: EventType = field(default=EventType.CANCEL, init=False)


@dataclass(frozen=True)
class ProgressEvent:
    """Snapshot of a run as delivered to the driver."""
    percent: Optional[float]
    occupied: tuple[Cell, ...]
    frontier: tuple[Cell, ...]
    type: EventType = field(default=EventType.PROGRESS, init=False)

    @classmethod
    def from_snapshot(cls, snapshot: ProgressSnapshot) -> "ProgressEvent":
        return cls(
            percent=snapshot.percent,
            occupied=snapshot.occupied,
            frontier=snapshot.frontier,
        )

    @property
    def done(self) -> bool:
        return self.percent is None


@dataclass(frozen=True)
class ErrorEvent:
    """A request the worker could not act on."""
    message: str
    type: EventType = field(default=EventType.ERROR, init=False)


WorkerRequest = Union[GenerateEvent, CancelEvent]
WorkerEvent = Union[ProgressEvent, ErrorEvent]
