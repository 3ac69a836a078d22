"""I/O utilities for growth runs.

Handles loading run configuration from YAML and exporting finished
snapshots as CSV rows of (kind, x, y).
"""

from __future__ import annotations

import csv
import pathlib
from typing import Any, Mapping

import yaml

from Growth.config import DEFAULT_BATCH_SIZE, DEFAULT_YIELD_INTERVAL_S, GrowthConfig
from Growth.snapshot import ProgressSnapshot


# -----------------------------------------------------------------------------
# Configuration loading
# -----------------------------------------------------------------------------

def _resolve_path(value: str, base_dir: pathlib.Path) -> pathlib.Path:
    path = pathlib.Path(value)
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()


def _require(raw: Mapping[str, Any], key: str) -> Any:
    if key not in raw:
        raise ValueError(f"Missing required config field: {key}")
    return raw[key]


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer; got {value!r}")
    return value


def load_growth_config(path: str | pathlib.Path) -> GrowthConfig:
    """Load and validate growth configuration from YAML."""
    path = pathlib.Path(path)
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")

    base_dir = path.resolve().parent

    out_path = raw.get("out_path")
    if out_path is not None:
        out_path = _resolve_path(str(out_path), base_dir)
    random_seed = raw.get("random_seed")

    return GrowthConfig(
        pick_count=_as_int("pick_count", _require(raw, "pick_count")),
        batch_size=_as_int("batch_size", raw.get("batch_size", DEFAULT_BATCH_SIZE)),
        yield_interval_s=float(raw.get("yield_interval_s", DEFAULT_YIELD_INTERVAL_S)),
        random_seed=_as_int("random_seed", random_seed) if random_seed is not None else None,
        run_policy=str(raw.get("run_policy", "reject")),
        out_path=str(out_path) if out_path is not None else None,
    )


# -----------------------------------------------------------------------------
# Snapshot I/O
# -----------------------------------------------------------------------------

_FIELDS = ["kind", "x", "y"]


def save_snapshot_csv(snapshot: ProgressSnapshot, path: str | pathlib.Path) -> pathlib.Path:
    """Write occupied and frontier cells of ``snapshot`` to CSV."""
    path_obj = pathlib.Path(path)
    path_obj.parent.mkdir(parents=True, exist_ok=True)

    with open(path_obj, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_FIELDS)
        writer.writeheader()
        for kind, cells in (("occupied", snapshot.occupied), ("frontier", snapshot.frontier)):
            for x, y in cells:
                writer.writerow({"kind": kind, "x": x, "y": y})
    return path_obj


def load_snapshot_csv(path: str | pathlib.Path) -> ProgressSnapshot:
    """Read a CSV written by ``save_snapshot_csv`` back into a final snapshot."""
    occupied: list[tuple[int, int]] = []
    frontier: list[tuple[int, int]] = []
    with open(path, "r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = set(_FIELDS) - set(reader.fieldnames or [])
        if missing:
            raise ValueError(f"Missing columns in snapshot CSV: {missing}")
        for row in reader:
            cell = (int(row["x"]), int(row["y"]))
            if row["kind"] == "occupied":
                occupied.append(cell)
            elif row["kind"] == "frontier":
                frontier.append(cell)
            else:
                raise ValueError(f"Unknown cell kind {row['kind']!r} in {path}")
    if not occupied:
        raise ValueError(f"No occupied cells found in {path}")
    return ProgressSnapshot(percent=None, occupied=tuple(occupied), frontier=tuple(frontier))
