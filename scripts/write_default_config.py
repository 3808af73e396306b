#!/usr/bin/env python3
"""Write the default simulation configuration as an editable YAML file."""
from __future__ import annotations

import argparse
import sys
from dataclasses import asdict
from pathlib import Path

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from flocksim.sim.core.config import SimulationConfig  # noqa: E402


def write_config(path: Path, config: SimulationConfig, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(f"{path} already exists. Use --overwrite to replace.")
    path.write_text(yaml.safe_dump(asdict(config), sort_keys=False))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Write the default flock configuration to YAML.")
    parser.add_argument("--output", type=Path, default=Path("flock.yaml"), help="File to write.")
    parser.add_argument("--flock-size", type=int, default=None, help="Override the number of agents.")
    parser.add_argument("--overwrite", action="store_true", help="Overwrite an existing file.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    config = SimulationConfig()
    if args.flock_size is not None:
        config.flock_size = args.flock_size
    args.output.parent.mkdir(parents=True, exist_ok=True)
    write_config(args.output, config, args.overwrite)
    print(f"Wrote default configuration to {args.output}")


if __name__ == "__main__":
    main()
