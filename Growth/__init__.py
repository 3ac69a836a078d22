"""Random branching growth on a diagonal lattice.

Grows a connected pattern one random frontier cell at a time, in bounded
batches, publishing an immutable snapshot after each batch so a caller can
render the pattern while it grows.

Main entry points:
- Growth.engine: GrowthEngine.start(pick_count, on_progress) -> RunHandle
- Growth.worker: GrowthWorker, a message-driven wrapper around the engine
- Growth.io: YAML config loading and snapshot CSV export
"""

from Growth.config import GrowthConfig, RunPolicy, validate_batch_size, validate_pick_count
from Growth.engine import GrowthEngine, GrowthRun, RunHandle, generate
from Growth.io import load_growth_config, load_snapshot_csv, save_snapshot_csv
from Growth.lattice import ORIGIN, Cell, get_tips, is_horizontal
from Growth.protocol import (
    CancelEvent,
    ErrorEvent,
    EventType,
    GenerateEvent,
    ProgressEvent,
)
from Growth.snapshot import BoundingBox, ProgressSnapshot
from Growth.state import CellSet, GrowthState
from Growth.worker import GrowthWorker

__all__ = [
    # Core classes
    "Cell",
    "CellSet",
    "GrowthState",
    "GrowthConfig",
    "RunPolicy",
    "GrowthRun",
    "GrowthEngine",
    "RunHandle",
    "GrowthWorker",
    "ProgressSnapshot",
    "BoundingBox",
    # Messages
    "EventType",
    "GenerateEvent",
    "CancelEvent",
    "ProgressEvent",
    "ErrorEvent",
    # Functions
    "ORIGIN",
    "get_tips",
    "is_horizontal",
    "validate_pick_count",
    "validate_batch_size",
    "generate",
    "load_growth_config",
    "save_snapshot_csv",
    "load_snapshot_csv",
]
