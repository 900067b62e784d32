"""Worker: calculate delegator and bond pool payouts for a cycle.

Usage:
    python -m worker.calculate_payouts --baker tz1... --cycle 500
    python -m worker.calculate_payouts --baker tz1... --cycle 500 --default-fee 7.5 --transfers
"""

import argparse
from dataclasses import asdict
from decimal import Decimal, InvalidOperation

import structlog

from bakerpay.repositories.bond_pool import BondPoolRepository
from bakerpay.repositories.delegator_fee import DelegatorFeeRepository
from bakerpay.services._helpers import dump_json
from bakerpay.services.bond_pool import build_transfers, validate_distribution
from bakerpay.services.errors import IndexerTransportError, PayoutValidationError
from bakerpay.services.payouts import (
    PayoutCalculator,
    delegator_transfers,
    total_fees,
    validate_cycle_payout,
)
from bakerpay.services.tzkt_client import TzKTClient
from db.connection import get_session, init_db

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def parse_fee(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Invalid fee '{raw}'. Expected a number (e.g. 5.5)")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Calculate payouts for a baker's cycle")
    parser.add_argument("--baker", "-b", required=True, help="Baker address")
    parser.add_argument("--cycle", "-c", type=int, required=True, help="Cycle number")
    parser.add_argument(
        "--default-fee", type=parse_fee, default=None,
        help="Fee percentage for delegators without an override",
    )
    parser.add_argument(
        "--transfers", action="store_true", default=False,
        help="Print the transfer batch instead of the full breakdown",
    )
    args = parser.parse_args(argv)

    init_db()
    with get_session() as session, TzKTClient() as client:
        calculator = PayoutCalculator(
            client,
            DelegatorFeeRepository(session),
            BondPoolRepository(session),
        )
        try:
            payout = calculator.calculate_cycle(args.baker, args.cycle, args.default_fee)
        except (IndexerTransportError, PayoutValidationError) as e:
            logger.error(
                "Payout calculation failed", baker=args.baker, cycle=args.cycle, error=str(e)
            )
            return 1

    problems: list[str] = validate_cycle_payout(payout)
    for problem in problems:
        logger.error("payout_problem", detail=problem)
    if payout.bond_pool is not None:
        for problem in validate_distribution(payout.bond_pool):
            logger.warning("bond_pool_problem", detail=problem)

    logger.info(
        "Cycle summary",
        baker=args.baker,
        cycle=args.cycle,
        delegators=len(payout.delegator_payouts),
        delegator_payments=f"{payout.total_delegator_payments:.6f}",
        fees=f"{total_fees(payout):.6f}",
        baker_share=f"{payout.baker_share:.6f}",
    )

    if args.transfers:
        if problems:
            logger.error("Refusing to build transfers for an invalid payout", cycle=args.cycle)
            return 1
        transfers = delegator_transfers(payout)
        if payout.bond_pool is not None:
            transfers += build_transfers(payout.bond_pool)
        print(dump_json([asdict(t) for t in transfers]))
    else:
        print(dump_json(asdict(payout)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
