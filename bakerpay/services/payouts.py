"""Per-cycle payout calculation.

Pulls the reward split for a baker's cycle, applies each delegator's fee
(override or default) and hands what remains to the bond pool, if one is
enabled. Indexer amounts arrive in mutez; results are in tez.
"""

from decimal import Decimal

import structlog

from bakerpay.repositories.bond_pool import BondPoolRepository
from bakerpay.repositories.delegator_fee import DelegatorFeeRepository
from bakerpay.services._helpers import TEZ_PRECISION, mutez_to_tez, round_tez, tez_to_mutez
from bakerpay.services.bond_pool import BondPoolDistributor
from bakerpay.services.delegator_fee import fee_amount, resolve_fee
from bakerpay.services.schemas.results import CyclePayout, DelegatorPayout, Transfer
from bakerpay.services.schemas.tzkt import DelegatorReward, RewardSplit
from bakerpay.services.tzkt_client import TzKTClient
from bakerpay.services.validation import MAX_FEE, MIN_FEE
from config import get_settings

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class PayoutCalculator:
    def __init__(
        self,
        client: TzKTClient,
        fee_repository: DelegatorFeeRepository,
        bond_pool_repository: BondPoolRepository | None = None,
    ) -> None:
        self.client: TzKTClient = client
        self.fee_repository: DelegatorFeeRepository = fee_repository
        self.bond_pool: BondPoolDistributor | None = (
            BondPoolDistributor(bond_pool_repository) if bond_pool_repository else None
        )

    def _delegator_payout(
        self, baker_id: str, delegator: DelegatorReward, default_fee: Decimal
    ) -> DelegatorPayout:
        gross: Decimal = mutez_to_tez(delegator.reward)
        fee: Decimal = resolve_fee(self.fee_repository, baker_id, delegator.address, default_fee)
        net: Decimal = round_tez(gross - fee_amount(fee, gross))
        return DelegatorPayout(
            address=delegator.address,
            gross_reward=gross,
            fee=fee,
            fee_amount=gross - net,
            net_reward=net,
            net_reward_mutez=tez_to_mutez(net),
        )

    def calculate_cycle(
        self, baker_id: str, cycle: int, default_fee: Decimal | None = None
    ) -> CyclePayout:
        """Delegator payments, baker share and bond pool split for one cycle."""
        if default_fee is None:
            default_fee = get_settings().payout.default_fee
        logger.info("Calculating cycle payouts", baker=baker_id, cycle=cycle)

        split: RewardSplit = self.client.get_reward_split(baker_id, cycle)
        total: Decimal = mutez_to_tez(split.total_rewards)
        payouts: list[DelegatorPayout] = [
            self._delegator_payout(baker_id, d, default_fee) for d in split.delegators
        ]
        paid: Decimal = sum((p.net_reward for p in payouts), Decimal(0))

        result = CyclePayout(
            baker_id=baker_id,
            cycle=cycle,
            total_rewards=total,
            delegator_payouts=payouts,
            total_delegator_payments=paid,
            baker_share=total - paid,
        )
        if self.bond_pool is not None:
            result.bond_pool = self.bond_pool.distribute(baker_id, cycle, total, paid)

        logger.info(
            "Cycle payouts calculated",
            baker=baker_id,
            cycle=cycle,
            delegators=len(payouts),
            total=f"{total:.6f}",
            delegator_payments=f"{paid:.6f}",
            baker_share=f"{result.baker_share:.6f}",
        )
        return result


def delegator_transfers(payout: CyclePayout) -> list[Transfer]:
    """One transfer per delegator owed at least one mutez."""
    return [
        Transfer(to=p.address, amount_mutez=p.net_reward_mutez)
        for p in payout.delegator_payouts
        if p.net_reward_mutez > 0
    ]


def total_fees(payout: CyclePayout) -> Decimal:
    """What the baker keeps from delegators: the sum of gross minus net."""
    return sum((p.gross_reward - p.net_reward for p in payout.delegator_payouts), Decimal(0))


def validate_cycle_payout(payout: CyclePayout) -> list[str]:
    """Problems that should block paying out `payout`; empty when it is sound.

    Delegators whose reward rounds down to nothing are only logged.
    """
    errors: list[str] = []
    distributed: Decimal = payout.total_delegator_payments + payout.baker_share
    if distributed > payout.total_rewards + TEZ_PRECISION:
        errors.append(
            f"Distributed amount ({distributed:.6f}) exceeds "
            f"total rewards ({payout.total_rewards:.6f})"
        )
    for p in payout.delegator_payouts:
        if p.net_reward < 0:
            errors.append(f"Negative reward for {p.address}")
        exponent = p.net_reward.as_tuple().exponent
        if isinstance(exponent, int) and -exponent > 6:
            errors.append(f"Reward for {p.address} has more than 6 decimal places")
        if not MIN_FEE <= p.fee <= MAX_FEE:
            errors.append(f"Invalid fee percentage for {p.address}: {p.fee}%")
        if p.gross_reward > 0 and p.net_reward_mutez == 0:
            logger.warning(
                "Dust payout skipped",
                cycle=payout.cycle,
                address=p.address,
                gross=f"{p.gross_reward:.6f}",
            )
    return errors
