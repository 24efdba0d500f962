"""
Run a feedrank maintenance job outside the API process.

Daily: interaction retention, drift sweep over active users, vector pruning.
Weekly: stale vector expiry and the peer vector rebuild.

Usage:
  From repo root (settings come from .env like the server):
    python -m feedrank_server.scripts.run_maintenance --job daily
    python -m feedrank_server.scripts.run_maintenance --job weekly --dataset sample

  Point VECTORS_DIR (or --vectors-dir) at the server's vector directory so the
  job works on the persisted vectors.
"""

import argparse
import asyncio
import logging
from dataclasses import replace
from pathlib import Path

from feedrank.stages.maintenance import JOBS

from ..config import get_config
from ..state import AppState


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a feedrank maintenance job")
    parser.add_argument("--job", choices=JOBS, required=True, help="Which job to run")
    parser.add_argument("--dataset", default=None, help="Dataset folder (default: DATASET from env)")
    parser.add_argument("--vectors-dir", type=Path, default=None, help="JSON vector directory")
    args = parser.parse_args()

    config = get_config()
    overrides = {}
    if args.dataset:
        overrides["dataset"] = args.dataset
    if args.vectors_dir:
        overrides["vectors_dir"] = args.vectors_dir.resolve()
    config = replace(config, **overrides)
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    ok, errors = config.validate()
    if not ok:
        for error in errors:
            print(f"Error: {error}")
        return 1

    engine = AppState(config).engine

    async def run():
        report = await engine.run_maintenance(args.job)
        await engine.drain()
        return report

    report = asyncio.run(run())
    print(report.model_dump_json(indent=2))
    return 1 if report.failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
