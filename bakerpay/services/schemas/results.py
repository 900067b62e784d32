"""Result dataclasses returned by payout calculations. Amounts in tez unless noted."""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class Transfer:
    to: str
    amount_mutez: int


@dataclass
class MemberPayout:
    address: str
    stake: Decimal
    stake_percentage: Decimal
    reward_before_charge: Decimal
    admin_charge: Decimal
    net_reward: Decimal
    net_reward_mutez: int
    is_manager: bool


@dataclass
class BondPoolDistribution:
    cycle: int
    total_pool_rewards: Decimal = Decimal(0)
    total_pool_stake: Decimal = Decimal(0)
    member_payouts: list[MemberPayout] = field(default_factory=list)
    manager_address: str | None = None
    total_admin_charges: Decimal = Decimal(0)
    manager_total_reward: Decimal = Decimal(0)
    total_distributed: Decimal = Decimal(0)


@dataclass
class DelegatorPayout:
    address: str
    gross_reward: Decimal
    fee: Decimal
    fee_amount: Decimal
    net_reward: Decimal
    net_reward_mutez: int


@dataclass
class CyclePayout:
    baker_id: str
    cycle: int
    total_rewards: Decimal
    delegator_payouts: list[DelegatorPayout]
    total_delegator_payments: Decimal
    baker_share: Decimal
    bond_pool: BondPoolDistribution | None = None
