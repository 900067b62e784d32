"""Indexer data transfer objects.

All records are frozen snapshots: nothing handed out by the client aliases
what it keeps in its cache.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal

from pydantic.alias_generators import to_camel

from bakerpay.services._helpers import to_decimal, to_int


@dataclass(frozen=True, slots=True)
class BakerRewards:
    """Per-cycle reward summary of one baker, amounts in mutez."""

    cycle: int
    staking_balance: Decimal = Decimal(0)
    delegated_balance: Decimal = Decimal(0)
    num_delegators: int = 0
    expected_blocks: Decimal = Decimal(0)
    expected_endorsements: Decimal = Decimal(0)
    future_blocks: int = 0
    future_block_rewards: Decimal = Decimal(0)
    future_block_fees: Decimal = Decimal(0)
    own_blocks: int = 0
    own_block_rewards: Decimal = Decimal(0)
    own_block_fees: Decimal = Decimal(0)
    extra_blocks: int = 0
    extra_block_rewards: Decimal = Decimal(0)
    extra_block_fees: Decimal = Decimal(0)
    missed_own_blocks: int = 0
    missed_own_block_rewards: Decimal = Decimal(0)
    missed_own_block_fees: Decimal = Decimal(0)
    missed_extra_blocks: int = 0
    missed_extra_block_rewards: Decimal = Decimal(0)
    missed_extra_block_fees: Decimal = Decimal(0)
    uncovered_own_blocks: int = 0
    uncovered_own_block_rewards: Decimal = Decimal(0)
    uncovered_own_block_fees: Decimal = Decimal(0)
    uncovered_extra_blocks: int = 0
    uncovered_extra_block_rewards: Decimal = Decimal(0)
    uncovered_extra_block_fees: Decimal = Decimal(0)
    future_endorsements: int = 0
    future_endorsement_rewards: Decimal = Decimal(0)
    endorsements: int = 0
    endorsement_rewards: Decimal = Decimal(0)
    missed_endorsements: int = 0
    missed_endorsement_rewards: Decimal = Decimal(0)
    uncovered_endorsements: int = 0
    uncovered_endorsement_rewards: Decimal = Decimal(0)
    double_baking_rewards: Decimal = Decimal(0)
    double_baking_lost_deposits: Decimal = Decimal(0)
    double_baking_lost_rewards: Decimal = Decimal(0)
    double_baking_lost_fees: Decimal = Decimal(0)
    double_endorsing_rewards: Decimal = Decimal(0)
    double_endorsing_lost_deposits: Decimal = Decimal(0)
    double_endorsing_lost_rewards: Decimal = Decimal(0)
    double_endorsing_lost_fees: Decimal = Decimal(0)
    revelation_rewards: Decimal = Decimal(0)
    revelation_lost_rewards: Decimal = Decimal(0)
    revelation_lost_fees: Decimal = Decimal(0)

    @classmethod
    def from_payload(cls, payload: Mapping[str, object], cycle: int) -> "BakerRewards":
        """Build from a TzKT rewards/split object; absent fields become zero."""
        values: dict[str, object] = {}
        for f in fields(cls):
            raw: object = payload.get(to_camel(f.name))
            if f.name == "cycle":
                values[f.name] = to_int(raw) or cycle
            elif f.type is int:
                values[f.name] = to_int(raw)
            else:
                values[f.name] = to_decimal(raw)
        return cls(**values)


@dataclass(frozen=True, slots=True)
class DelegatorInfo:
    address: str
    balance: Decimal
    staked_balance: Decimal
    type: str


@dataclass(frozen=True, slots=True)
class DelegatorReward:
    """One delegator's entry in a reward split; `reward` comes from the indexer."""

    address: str
    balance: Decimal
    share: Decimal
    reward: Decimal


@dataclass(frozen=True, slots=True)
class RewardSplit:
    cycle: int
    baker: str
    staking_balance: Decimal
    delegated_balance: Decimal
    num_delegators: int
    delegators: tuple[DelegatorReward, ...]
    baker_rewards: Decimal
    delegators_rewards: Decimal
    total_rewards: Decimal


@dataclass(frozen=True, slots=True)
class CycleInfo:
    index: int
    first_level: int
    start_time: datetime | None
    end_time: datetime | None
    snapshot_level: int
    random_seed: str
    total_bakers: int
    total_delegators: int
    total_staking: Decimal
