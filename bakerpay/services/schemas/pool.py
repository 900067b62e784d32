"""Persisted configuration records: bond pools and delegator fee overrides."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class BondPoolSettings:
    baker_id: str
    enabled: bool
    created_at: str
    updated_at: str


@dataclass(frozen=True, slots=True)
class BondPoolMember:
    baker_id: str
    address: str
    amount: Decimal
    admin_charge: Decimal
    created_at: str
    updated_at: str
    name: str | None = None
    is_manager: bool = False


@dataclass(frozen=True, slots=True)
class DelegatorFee:
    """Per-delegator override of the baker's default fee, in percent."""

    baker_id: str
    address: str
    fee: Decimal
    created_at: str
    updated_at: str
