"""Baker vs delegator reward totals for one cycle.

total      = own/extra block rewards + endorsement rewards + own/extra block fees
             + revelation rewards - double baking/endorsing lost rewards
delegators = sum of the per-delegator rewards reported by the indexer
baker      = total - delegators

All arithmetic is Decimal so `total == baker + delegators` holds exactly.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal

from bakerpay.services._helpers import to_decimal
from bakerpay.services.schemas.tzkt import BakerRewards, DelegatorReward, RewardSplit


def total_rewards(rewards: BakerRewards) -> Decimal:
    return (
        rewards.own_block_rewards
        + rewards.extra_block_rewards
        + rewards.endorsement_rewards
        + rewards.own_block_fees
        + rewards.extra_block_fees
        + rewards.revelation_rewards
        - rewards.double_baking_lost_rewards
        - rewards.double_endorsing_lost_rewards
    )


def delegators_rewards(delegators: Iterable[DelegatorReward]) -> Decimal:
    return sum((d.reward for d in delegators), Decimal(0))


def parse_delegator_rewards(raw: object) -> tuple[DelegatorReward, ...]:
    """Normalise the `delegators` array of a rewards/split payload.

    Anything that is not a list yields no delegators; entries that are not
    objects are skipped.
    """
    if not isinstance(raw, list):
        return ()
    return tuple(
        DelegatorReward(
            address=str(item.get("address") or ""),
            balance=to_decimal(item.get("balance")),
            share=to_decimal(item.get("share")),
            reward=to_decimal(item.get("reward")),
        )
        for item in raw
        if isinstance(item, Mapping)
    )


def build_reward_split(
    baker_id: str,
    cycle: int,
    rewards: BakerRewards,
    delegators: tuple[DelegatorReward, ...],
) -> RewardSplit:
    total: Decimal = total_rewards(rewards)
    to_delegators: Decimal = delegators_rewards(delegators)
    return RewardSplit(
        cycle=cycle,
        baker=baker_id,
        staking_balance=rewards.staking_balance,
        delegated_balance=rewards.delegated_balance,
        num_delegators=rewards.num_delegators or len(delegators),
        delegators=delegators,
        baker_rewards=total - to_delegators,
        delegators_rewards=to_delegators,
        total_rewards=total,
    )
