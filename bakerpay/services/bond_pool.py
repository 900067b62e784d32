"""Bond pool reward distribution.

Members share the pool rewards in proportion to their contribution; each
member's administrative charge (a fixed tez amount) is deducted from their
share and collected by the pool manager. Net rewards are not clamped: a charge
larger than the proportional reward yields a negative figure, which
`validate_distribution` reports.
"""

from dataclasses import replace
from decimal import Decimal

import structlog

from bakerpay.repositories.bond_pool import BondPoolRepository
from bakerpay.services._helpers import now_iso, round_tez, tez_to_mutez
from bakerpay.services.schemas.pool import BondPoolMember, BondPoolSettings
from bakerpay.services.schemas.results import BondPoolDistribution, MemberPayout, Transfer
from bakerpay.services.validation import validate_admin_charge, validate_amount

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DISTRIBUTION_TOLERANCE: Decimal = Decimal("0.000001")


# -- proportional shares ---------------------------------------------------


def share_percentage(member_amount: Decimal, total_pool_amount: Decimal) -> Decimal:
    if total_pool_amount <= 0:
        return Decimal(0)
    return member_amount / total_pool_amount * 100


def reward_share(
    total_rewards: Decimal, total_pool_amount: Decimal, member: BondPoolMember
) -> Decimal:
    """Member's proportional reward minus their administrative charge."""
    if total_pool_amount <= 0:
        return Decimal(0)
    base: Decimal = total_rewards * share_percentage(member.amount, total_pool_amount) / 100
    return base - member.admin_charge


# -- validated mutation ----------------------------------------------------


def new_member(
    baker_id: str,
    address: str,
    amount: Decimal | int | str,
    admin_charge: Decimal | int | str = Decimal(0),
    name: str | None = None,
    is_manager: bool = False,
) -> BondPoolMember:
    ts: str = now_iso()
    return BondPoolMember(
        baker_id=baker_id,
        address=address,
        amount=validate_amount(amount),
        admin_charge=validate_admin_charge(admin_charge),
        created_at=ts,
        updated_at=ts,
        name=name,
        is_manager=is_manager,
    )


def update_member_amount(member: BondPoolMember, amount: Decimal | int | str) -> BondPoolMember:
    return replace(member, amount=validate_amount(amount), updated_at=now_iso())


def update_admin_charge(member: BondPoolMember, charge: Decimal | int | str) -> BondPoolMember:
    return replace(member, admin_charge=validate_admin_charge(charge), updated_at=now_iso())


def set_manager(member: BondPoolMember, is_manager: bool) -> BondPoolMember:
    return replace(member, is_manager=is_manager, updated_at=now_iso())


def new_pool_settings(baker_id: str, enabled: bool = False) -> BondPoolSettings:
    ts: str = now_iso()
    return BondPoolSettings(baker_id=baker_id, enabled=enabled, created_at=ts, updated_at=ts)


def enable_pool(settings: BondPoolSettings) -> BondPoolSettings:
    return replace(settings, enabled=True, updated_at=now_iso())


def disable_pool(settings: BondPoolSettings) -> BondPoolSettings:
    return replace(settings, enabled=False, updated_at=now_iso())


# -- distribution ----------------------------------------------------------


def distribute_pool(
    cycle: int, pool_rewards: Decimal, members: list[BondPoolMember]
) -> BondPoolDistribution:
    """Split `pool_rewards` (tez) across `members`; the first manager collects the charges."""
    total_stake: Decimal = sum((m.amount for m in members), Decimal(0))
    payouts: list[MemberPayout] = []
    total_charges: Decimal = Decimal(0)
    managers: list[str] = [m.address for m in members if m.is_manager]
    if len(managers) > 1:
        logger.warning("Multiple pool managers, using first", managers=managers)
    manager: str | None = managers[0] if managers else None

    for member in members:
        net: Decimal = round_tez(reward_share(pool_rewards, total_stake, member))
        share: Decimal = share_percentage(member.amount, total_stake)
        payouts.append(
            MemberPayout(
                address=member.address,
                stake=member.amount,
                stake_percentage=share,
                reward_before_charge=pool_rewards * share / 100,
                admin_charge=member.admin_charge,
                net_reward=net,
                net_reward_mutez=tez_to_mutez(net),
                is_manager=member.is_manager,
            )
        )
        total_charges += member.admin_charge
        logger.debug(
            "Member payout",
            address=member.address,
            share=f"{share:.2f}",
            net=str(net),
        )

    manager_total: Decimal = Decimal(0)
    if manager is not None:
        own: Decimal = next(p.net_reward for p in payouts if p.address == manager)
        manager_total = own + total_charges

    total_net: Decimal = sum((p.net_reward for p in payouts), Decimal(0))
    return BondPoolDistribution(
        cycle=cycle,
        total_pool_rewards=pool_rewards,
        total_pool_stake=total_stake,
        member_payouts=payouts,
        manager_address=manager,
        total_admin_charges=total_charges,
        manager_total_reward=manager_total,
        total_distributed=total_net + total_charges,
    )


def validate_distribution(distribution: BondPoolDistribution) -> list[str]:
    """Problems that should block paying out `distribution`; empty when it is sound."""
    errors: list[str] = []
    ceiling: Decimal = distribution.total_pool_rewards + DISTRIBUTION_TOLERANCE
    if distribution.total_distributed > ceiling:
        errors.append(
            f"Distributed amount ({distribution.total_distributed:.6f}) exceeds "
            f"pool rewards ({distribution.total_pool_rewards:.6f})"
        )
    for payout in distribution.member_payouts:
        if payout.net_reward < 0:
            errors.append(f"Negative reward for member {payout.address}")
        exponent = payout.net_reward.as_tuple().exponent
        if isinstance(exponent, int) and -exponent > 6:
            errors.append(f"Reward for {payout.address} has more than 6 decimal places")
    if distribution.total_admin_charges > 0 and distribution.manager_address is None:
        errors.append("Admin charges exist but no manager found")
    return errors


def build_transfers(distribution: BondPoolDistribution) -> list[Transfer]:
    """Member payouts plus one transfer of all admin charges to the manager."""
    transfers: list[Transfer] = [
        Transfer(to=p.address, amount_mutez=p.net_reward_mutez)
        for p in distribution.member_payouts
        if p.net_reward_mutez > 0
    ]
    if distribution.manager_address and distribution.total_admin_charges > 0:
        transfers.append(
            Transfer(
                to=distribution.manager_address,
                amount_mutez=tez_to_mutez(distribution.total_admin_charges),
            )
        )
    logger.info(
        "Built bond pool transfers",
        cycle=distribution.cycle,
        transfers=len(transfers),
        admin_charges=str(distribution.total_admin_charges),
    )
    return transfers


class BondPoolDistributor:
    """Distributes what is left of a cycle's rewards after delegator payments."""

    def __init__(self, repository: BondPoolRepository) -> None:
        self.repository: BondPoolRepository = repository

    def distribute(
        self,
        baker_id: str,
        cycle: int,
        total_cycle_rewards: Decimal,
        total_delegator_payments: Decimal,
    ) -> BondPoolDistribution:
        logger.info("Calculating bond pool rewards", baker=baker_id, cycle=cycle)
        if not self.repository.is_enabled(baker_id):
            logger.info("Bond pool not enabled", baker=baker_id)
            return BondPoolDistribution(cycle=cycle)

        pool_rewards: Decimal = total_cycle_rewards - total_delegator_payments
        if pool_rewards <= 0:
            logger.warning("No rewards available for bond pool", baker=baker_id, cycle=cycle)
            return BondPoolDistribution(cycle=cycle)

        members: list[BondPoolMember] = self.repository.list_members(baker_id)
        if not members:
            logger.warning("No bond pool members", baker=baker_id)
            return BondPoolDistribution(cycle=cycle)

        distribution: BondPoolDistribution = distribute_pool(cycle, pool_rewards, members)
        logger.info(
            "Bond pool distribution computed",
            baker=baker_id,
            cycle=cycle,
            members=len(members),
            total_distributed=f"{distribution.total_distributed:.6f}",
            admin_charges=f"{distribution.total_admin_charges:.6f}",
        )
        return distribution

    def get_pool_manager(self, baker_id: str) -> BondPoolMember | None:
        managers: list[BondPoolMember] = self.repository.list_managers(baker_id)
        if not managers:
            logger.warning("No pool manager found", baker=baker_id)
            return None
        if len(managers) > 1:
            logger.warning("Multiple pool managers, using first", baker=baker_id)
        return managers[0]
