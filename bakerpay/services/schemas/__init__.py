"""Shared dataclasses for bakerpay services."""

from bakerpay.services.schemas.pool import BondPoolMember, BondPoolSettings, DelegatorFee
from bakerpay.services.schemas.results import (
    BondPoolDistribution,
    CyclePayout,
    DelegatorPayout,
    MemberPayout,
    Transfer,
)
from bakerpay.services.schemas.tzkt import (
    BakerRewards,
    CycleInfo,
    DelegatorInfo,
    DelegatorReward,
    RewardSplit,
)

__all__ = [
    # Indexer schemas
    "BakerRewards",
    "CycleInfo",
    "DelegatorInfo",
    "DelegatorReward",
    "RewardSplit",
    # Persisted records
    "BondPoolMember",
    "BondPoolSettings",
    "DelegatorFee",
    # Result schemas
    "BondPoolDistribution",
    "CyclePayout",
    "DelegatorPayout",
    "MemberPayout",
    "Transfer",
]
