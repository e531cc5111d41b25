"""Cron entry point for the round scheduler.

    python -m src.cr_scheduler.cli            # one pass, exit 1 on failures
    python -m src.cr_scheduler.cli --loop 15  # pass every 15 seconds
"""

import argparse
import asyncio
import logging
import sys

from src.cr_common.database import engine
from src.cr_common.redis_client import close_redis, get_redis
from src.cr_scheduler.application.runner import build_scheduler, run_scheduler_once

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create, lock and settle candle rounds.")
    parser.add_argument(
        "--loop",
        type=float,
        metavar="SECONDS",
        default=None,
        help="Keep running, one pass every SECONDS (default: single pass)",
    )
    parser.add_argument("--no-lease", action="store_true", help="Skip the Redis run lease")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


async def _async_main(args: argparse.Namespace) -> int:
    scheduler = build_scheduler()
    redis = None if args.no_lease else await get_redis()
    exit_code = 0
    try:
        while True:
            report = await run_scheduler_once(scheduler, redis)
            if report is not None and not report.success:
                exit_code = 1
            if args.loop is None:
                break
            await asyncio.sleep(args.loop)
    finally:
        await engine.dispose()
        await close_redis()
    return exit_code


def main() -> None:
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    sys.exit(asyncio.run(_async_main(args)))


if __name__ == "__main__":
    main()
