"""Domain sale / auto-renew notifier.

Entry point for the notification passes. Each pass picks up the events of one
kind that have buyer metadata and were never visited before, subscribes the
buyer's email on the marketing API, and blacklists the events it visited.

Usage:
  # One pass per kind, then exit (for cron or any external scheduler)
  python notifier.py run

  # Only sale events
  python notifier.py run --kind sales

  # Keep running passes every N seconds in a single worker
  python notifier.py watch --interval 60
"""
import argparse
import asyncio
import logging
import sys
from typing import List

from app_config import Config, load_config
from db.connection import create_engine, make_session_factory, ping
from pipeline.kinds import KINDS, EventKind
from pipeline.runner import run_all

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _selected_kinds(name: str) -> List[EventKind]:
    if name == "all":
        return list(KINDS.values())
    return [KINDS[name]]


async def run_once(conf: Config, kinds: List[EventKind]) -> int:
    """Run one pass per kind. Returns a process exit code."""
    engine = create_engine(conf.database)
    try:
        if not await ping(engine):
            return 1
        logger.info("database: connected")
        await run_all(make_session_factory(engine), kinds, conf)
        return 0
    finally:
        await engine.dispose()


async def watch(conf: Config, kinds: List[EventKind], interval: float) -> int:
    """Run passes forever, waiting `interval` seconds after each round.

    Rounds never overlap inside this process; the pass leases keep other
    processes from overlapping with it.
    """
    engine = create_engine(conf.database)
    try:
        if not await ping(engine):
            return 1
        logger.info("database: connected")
        session_factory = make_session_factory(engine)
        while True:
            await run_all(session_factory, kinds, conf)
            await asyncio.sleep(interval)
    finally:
        await engine.dispose()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Domain sale and auto-renew email notifier"
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    sub = parser.add_subparsers(dest="command")

    kind_choices = ["all", *KINDS]

    run = sub.add_parser("run", help="Run one notification pass per event kind")
    run.add_argument("--kind", choices=kind_choices, default="all")

    watch_cmd = sub.add_parser("watch", help="Run notification passes on a fixed interval")
    watch_cmd.add_argument("--kind", choices=kind_choices, default="all")
    watch_cmd.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between rounds (default: NOTIFIER_INTERVAL or 60)",
    )

    return parser


if __name__ == "__main__":
    parser = _build_arg_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if args.command not in ("run", "watch"):
        parser.print_help()
        sys.exit(2)

    logger.info("starting v%s of notifier", VERSION)
    conf = load_config()
    kinds = _selected_kinds(args.kind)

    if args.command == "run":
        sys.exit(asyncio.run(run_once(conf, kinds)))

    interval = args.interval if args.interval is not None else conf.scheduler.interval
    try:
        sys.exit(asyncio.run(watch(conf, kinds, interval)))
    except KeyboardInterrupt:
        logger.info("stopped")
