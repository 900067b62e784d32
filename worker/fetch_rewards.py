"""Worker: fetch a baker's reward split for one or more cycles from TzKT.

Usage:
    python -m worker.fetch_rewards --baker tz1... --cycle 500
    python -m worker.fetch_rewards --baker tz1... --cycle 500 --to-cycle 505
"""

import argparse
from dataclasses import asdict

import structlog

from bakerpay.services._helpers import dump_json
from bakerpay.services.errors import IndexerTransportError
from bakerpay.services.tzkt_client import TzKTClient

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fetch baker reward splits from TzKT")
    parser.add_argument("--baker", "-b", required=True, help="Baker address")
    parser.add_argument("--cycle", "-c", type=int, required=True, help="First cycle")
    parser.add_argument("--to-cycle", type=int, default=None, help="Last cycle (inclusive)")
    parser.add_argument("--base-url", default=None, help="Override the TzKT API URL")
    args = parser.parse_args(argv)

    last: int = args.to_cycle if args.to_cycle is not None else args.cycle
    if last < args.cycle:
        parser.error("--to-cycle must not be before --cycle")

    splits: list[dict] = []
    with TzKTClient(base_url=args.base_url) as client:
        for cycle in range(args.cycle, last + 1):
            try:
                split = client.get_reward_split(args.baker, cycle)
            except IndexerTransportError as e:
                logger.error("Fetch failed", baker=args.baker, cycle=cycle, error=str(e))
                return 1
            splits.append(asdict(split))

    print(dump_json(splits))
    logger.info("Fetched reward splits", baker=args.baker, cycles=len(splits))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
