from __future__ import annotations

import argparse
import dataclasses
import logging
import pathlib
from typing import Sequence

from Growth.config import GrowthConfig
from Growth.engine import GrowthEngine
from Growth.io import load_growth_config, save_snapshot_csv
from Growth.snapshot import ProgressSnapshot

logger = logging.getLogger("run_growth")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Grow a random branching pattern on a diagonal lattice.")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to growth YAML config (defaults are used when omitted)",
    )
    parser.add_argument("--pick-count", type=int, default=None, help="Number of cells to grow")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--batch-size", type=int, default=None, help="Cells grown between progress reports")
    parser.add_argument("--out", default=None, help="Write the final snapshot to this CSV path")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> GrowthConfig:
    config = load_growth_config(args.config) if args.config else GrowthConfig()
    overrides = {}
    if args.pick_count is not None:
        overrides["pick_count"] = args.pick_count
    if args.seed is not None:
        overrides["random_seed"] = args.seed
    if args.batch_size is not None:
        overrides["batch_size"] = args.batch_size
    if args.out is not None:
        overrides["out_path"] = str(pathlib.Path(args.out).resolve())
    return dataclasses.replace(config, **overrides) if overrides else config


def run(config: GrowthConfig) -> ProgressSnapshot:
    """Run one growth to completion (or Ctrl-C) and return its last snapshot."""
    snapshots: list[ProgressSnapshot] = []

    def on_progress(snapshot: ProgressSnapshot) -> None:
        snapshots.append(snapshot)
        if snapshot.percent is not None:
            logger.info(
                "progress %.1f%% occupied=%d frontier=%d",
                snapshot.percent,
                snapshot.occupied_count,
                snapshot.frontier_count,
            )

    engine = GrowthEngine(config)
    handle = engine.start(config.pick_count, on_progress)
    try:
        while not handle.join(timeout=0.1):
            pass
    except KeyboardInterrupt:
        handle()
        handle.join()
    return snapshots[-1]


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
    )
    config = build_config(args)
    logger.debug("Resolved GrowthConfig: %s", config)

    final = run(config)
    box = final.bounding_box()
    print(
        f"Grew {final.occupied_count}/{config.pick_count} cells; "
        f"frontier {final.frontier_count} (ratio {final.frontier_ratio:.2g}); "
        f"extent {box.width + 1}x{box.height + 1}"
    )
    if config.out_path is not None:
        out_path = save_snapshot_csv(final, config.out_path)
        print(f"Wrote snapshot to {out_path}")


if __name__ == "__main__":
    main()
