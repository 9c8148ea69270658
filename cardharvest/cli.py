"""
Command line interface for cardharvest.

Subcommands:

* ``run`` – resume the checkpointed sweep over the card listing.  Exits
  0 once every page is done, 2 when a listing page fails and the run is
  aborted, 1 on any other fatal error.
* ``resolve`` – fetch one or more cards by id and print them as JSON.
* ``status`` – show the checkpoint and how many cards each tier holds.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Dict, List, Optional

from .config import HarvestConfig, load_config
from .errors import HarvestError
from .harvest.runner import build_renderer, build_resolver, build_runner
from .store import CheckpointStore, DatasetStore

logger = logging.getLogger("cardharvest.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_ABORTED = 2


def _config_from_args(args: argparse.Namespace) -> HarvestConfig:
    overrides: Dict[str, object] = {
        "data_dir": getattr(args, "data_dir", None),
        "total_pages": getattr(args, "total_pages", None),
    }
    if getattr(args, "headful", False):
        overrides["headless"] = False
    return load_config(args.config, overrides=overrides)


def cmd_run(args: argparse.Namespace) -> int:
    """Run (or resume) the harvest."""
    config = _config_from_args(args)
    runner = build_runner(config)
    if args.restart:
        runner.checkpoint.reset()
    report = asyncio.run(runner.run())
    if not report.completed:
        logger.error("Harvest aborted at page %d: %s", report.last_completed_page + 1, report.error)
        return EXIT_ABORTED
    logger.info("Harvest complete; dataset written to %s", config.dataset_path)
    return EXIT_OK


async def _resolve_cards(config: HarvestConfig, card_ids: List[str]) -> List[Optional[dict]]:
    resolver = build_resolver(config)
    results: List[Optional[dict]] = []
    async with build_renderer(config) as renderer:
        for card_id in card_ids:
            record = await resolver.resolve(renderer, card_id)
            results.append(record.to_dict() if record else None)
    return results


def cmd_resolve(args: argparse.Namespace) -> int:
    """Print the resolved records for the given card ids."""
    config = _config_from_args(args)
    results = asyncio.run(_resolve_cards(config, args.card_ids))
    print(json.dumps(results, indent=2, ensure_ascii=False))
    failed = [cid for cid, res in zip(args.card_ids, results) if res is None]
    if failed:
        logger.error("Could not resolve: %s", ", ".join(failed))
        return EXIT_FAILURE
    return EXIT_OK


def cmd_status(args: argparse.Namespace) -> int:
    """Print checkpoint position and per-tier counts."""
    config = _config_from_args(args)
    checkpoint = CheckpointStore(config.checkpoint_path).read()
    summary = DatasetStore(config.dataset_path, mode=config.dataset_mode).summary()
    print(f"Checkpoint: page {checkpoint} of {config.total_pages}")
    print(f"Cards stored: {sum(summary.values())}")
    for tier in sorted(summary):
        print(f"   Tier {tier}: {summary[tier]}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cardharvest", description="Checkpointed card catalog harvester")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--data-dir", dest="data_dir", help="Directory holding dataset and checkpoint")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_cmd = subparsers.add_parser("run", help="Harvest listing pages from the last checkpoint")
    run_cmd.add_argument("--total-pages", type=int, dest="total_pages", help="Last listing page to visit")
    run_cmd.add_argument("--restart", action="store_true", help="Clear the checkpoint and start at page 1")
    run_cmd.add_argument("--headful", action="store_true", help="Show the browser window")
    run_cmd.set_defaults(func=cmd_run)

    resolve_cmd = subparsers.add_parser("resolve", help="Fetch individual cards by id")
    resolve_cmd.add_argument("card_ids", nargs="+", metavar="CARD_ID")
    resolve_cmd.add_argument("--headful", action="store_true", help="Show the browser window")
    resolve_cmd.set_defaults(func=cmd_resolve)

    status_cmd = subparsers.add_parser("status", help="Show harvest progress")
    status_cmd.set_defaults(func=cmd_status)
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    try:
        return args.func(args)
    except HarvestError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
