"""Tests for bakerpay.services.bond_pool."""

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from bakerpay.repositories.bond_pool import BondPoolRepository
from bakerpay.services.bond_pool import (
    BondPoolDistributor,
    build_transfers,
    disable_pool,
    distribute_pool,
    enable_pool,
    new_member,
    new_pool_settings,
    reward_share,
    set_manager,
    share_percentage,
    update_admin_charge,
    update_member_amount,
    validate_distribution,
)
from bakerpay.services.errors import InvalidAdminChargeError, InvalidAmountError
from bakerpay.services.schemas.pool import BondPoolMember
from bakerpay.services.schemas.results import BondPoolDistribution, MemberPayout

BAKER = "tz1ABC"


def _member(address: str, amount: str, charge: str = "0", manager: bool = False) -> BondPoolMember:
    return new_member(BAKER, address, Decimal(amount), Decimal(charge), is_manager=manager)


# ── shares ────────────────────────────────────────────────────────────────────


def test_reward_share_deducts_admin_charge() -> None:
    member = _member("tz1M", "250", "5")

    assert share_percentage(Decimal(250), Decimal(1000)) == Decimal(25)
    assert reward_share(Decimal(1000), Decimal(1000), member) == Decimal(245)


def test_reward_share_can_go_negative() -> None:
    member = _member("tz1M", "10", "50")

    assert reward_share(Decimal(100), Decimal(100), member) == Decimal(-40)


def test_empty_pool_shares_are_zero() -> None:
    member = _member("tz1M", "250", "5")

    assert share_percentage(Decimal(250), Decimal(0)) == Decimal(0)
    assert reward_share(Decimal(1000), Decimal(0), member) == Decimal(0)


def test_share_percentages_sum_to_100() -> None:
    amounts = [Decimal(1), Decimal(1), Decimal(1), Decimal("7.5"), Decimal("1234.567891")]
    total = sum(amounts, Decimal(0))

    shares = sum((share_percentage(a, total) for a in amounts), Decimal(0))

    assert abs(shares - 100) < Decimal("1E-20")


# ── validated mutation ────────────────────────────────────────────────────────


@pytest.mark.parametrize("amount", ["-10", "0"])
def test_update_amount_rejects_non_positive(amount: str) -> None:
    member = _member("tz1M", "250")

    with pytest.raises(InvalidAmountError) as exc_info:
        update_member_amount(member, Decimal(amount))

    assert exc_info.value.field == "amount"
    assert member.amount == Decimal(250)


def test_update_admin_charge_rejects_negative() -> None:
    member = _member("tz1M", "250", "5")

    with pytest.raises(InvalidAdminChargeError):
        update_admin_charge(member, Decimal("-0.01"))
    assert member.admin_charge == Decimal(5)


def test_updates_return_new_records() -> None:
    member = _member("tz1M", "250", "5")

    bigger = update_member_amount(member, "300")
    free = update_admin_charge(bigger, 0)
    manager = set_manager(free, True)

    assert (member.amount, member.admin_charge, member.is_manager) == (250, 5, False)
    assert (manager.amount, manager.admin_charge, manager.is_manager) == (300, 0, True)


def test_new_member_rejects_bad_values() -> None:
    with pytest.raises(InvalidAmountError):
        new_member(BAKER, "tz1M", Decimal(0))
    with pytest.raises(InvalidAdminChargeError):
        new_member(BAKER, "tz1M", Decimal(1), Decimal(-1))
    with pytest.raises(InvalidAmountError):
        new_member(BAKER, "tz1M", Decimal("NaN"))


def test_pool_toggle() -> None:
    settings = new_pool_settings(BAKER)

    assert settings.enabled is False
    assert enable_pool(settings).enabled is True
    assert disable_pool(enable_pool(settings)).enabled is False


# ── distribution ──────────────────────────────────────────────────────────────


def test_distribute_pool_with_manager() -> None:
    members = [
        _member("tz1Manager", "500", "0", manager=True),
        _member("tz1A", "300", "2"),
        _member("tz1B", "200", "3"),
    ]

    dist = distribute_pool(10, Decimal(100), members)

    by_addr = {p.address: p for p in dist.member_payouts}
    assert by_addr["tz1Manager"].net_reward == Decimal(50)
    assert by_addr["tz1A"].net_reward == Decimal(28)
    assert by_addr["tz1B"].net_reward == Decimal(17)
    assert by_addr["tz1A"].net_reward_mutez == 28_000_000
    assert dist.manager_address == "tz1Manager"
    assert dist.total_admin_charges == Decimal(5)
    assert dist.manager_total_reward == Decimal(55)
    assert dist.total_distributed == Decimal(100)
    assert validate_distribution(dist) == []


def test_distribute_pool_rounds_down_to_mutez() -> None:
    members = [_member("tz1A", "1"), _member("tz1B", "1"), _member("tz1C", "1")]

    dist = distribute_pool(10, Decimal(1), members)

    assert {p.net_reward for p in dist.member_payouts} == {Decimal("0.333333")}
    assert dist.total_distributed <= dist.total_pool_rewards
    assert validate_distribution(dist) == []


def test_first_manager_wins() -> None:
    members = [
        _member("tz1First", "100", manager=True),
        _member("tz1Second", "100", manager=True),
    ]

    assert distribute_pool(1, Decimal(10), members).manager_address == "tz1First"


def test_validate_distribution_reports_problems() -> None:
    members = [_member("tz1A", "10", "50"), _member("tz1B", "90")]

    dist = distribute_pool(1, Decimal(100), members)
    problems = validate_distribution(dist)

    assert "Negative reward for member tz1A" in problems
    assert "Admin charges exist but no manager found" in problems


def test_validate_distribution_flags_over_distribution() -> None:
    dist = BondPoolDistribution(
        cycle=1,
        total_pool_rewards=Decimal(10),
        member_payouts=[
            MemberPayout("tz1A", Decimal(1), Decimal(100), Decimal(10), Decimal(0),
                         Decimal("10.0000001"), 10_000_000, False),
        ],
        total_distributed=Decimal("10.5"),
    )

    problems = validate_distribution(dist)

    assert any("exceeds pool rewards" in p for p in problems)
    assert any("more than 6 decimal places" in p for p in problems)


def test_build_transfers_includes_manager_charges() -> None:
    members = [
        _member("tz1Manager", "500", "0", manager=True),
        _member("tz1A", "300", "2"),
        _member("tz1Tiny", "200", "20"),
    ]

    transfers = build_transfers(distribute_pool(1, Decimal(100), members))

    assert [(t.to, t.amount_mutez) for t in transfers] == [
        ("tz1Manager", 50_000_000),
        ("tz1A", 28_000_000),
        ("tz1Manager", 22_000_000),
    ]


# ── distributor ───────────────────────────────────────────────────────────────


@pytest.fixture()
def repo(session: Session) -> BondPoolRepository:
    return BondPoolRepository(session)


def test_distributor_disabled_pool(repo: BondPoolRepository) -> None:
    repo.save_member(_member("tz1A", "100"))

    dist = BondPoolDistributor(repo).distribute(BAKER, 1, Decimal(100), Decimal(40))

    assert dist.member_payouts == []
    assert dist.total_distributed == Decimal(0)


def test_distributor_nothing_left_for_pool(repo: BondPoolRepository) -> None:
    repo.save_settings(new_pool_settings(BAKER, enabled=True))
    repo.save_member(_member("tz1A", "100"))

    dist = BondPoolDistributor(repo).distribute(BAKER, 1, Decimal(100), Decimal(100))

    assert dist.member_payouts == []


def test_distributor_without_members(repo: BondPoolRepository) -> None:
    repo.save_settings(new_pool_settings(BAKER, enabled=True))

    dist = BondPoolDistributor(repo).distribute(BAKER, 1, Decimal(100), Decimal(40))

    assert dist.member_payouts == []


def test_distributor_splits_remaining_rewards(repo: BondPoolRepository) -> None:
    repo.save_settings(new_pool_settings(BAKER, enabled=True))
    repo.save_member(_member("tz1Manager", "750", "0", manager=True))
    repo.save_member(_member("tz1M", "250", "5"))

    dist = BondPoolDistributor(repo).distribute(BAKER, 1, Decimal(1040), Decimal(40))

    by_addr = {p.address: p for p in dist.member_payouts}
    assert dist.total_pool_rewards == Decimal(1000)
    assert by_addr["tz1M"].net_reward == Decimal(245)
    assert dist.manager_total_reward == Decimal(755)


def test_get_pool_manager(repo: BondPoolRepository) -> None:
    distributor = BondPoolDistributor(repo)
    assert distributor.get_pool_manager(BAKER) is None

    repo.save_member(_member("tz1A", "100"))
    repo.save_member(_member("tz1Manager", "50", manager=True))

    manager = distributor.get_pool_manager(BAKER)
    assert manager is not None
    assert manager.address == "tz1Manager"
