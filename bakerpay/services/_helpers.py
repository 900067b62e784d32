"""Shared utilities for the service layer."""

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import ROUND_DOWN, Decimal

Serializable = Mapping[str, object] | list[Mapping[str, object]]

MUTEZ_PER_TEZ: Decimal = Decimal(1_000_000)
TEZ_PRECISION: Decimal = Decimal("1E-6")


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def to_decimal(value: object) -> Decimal:
    """Indexer number -> Decimal. Missing, null and empty values are zero."""
    if value is None or value == "":
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_int(value: object) -> int:
    if value is None or value == "":
        return 0
    return int(value)


def mutez_to_tez(mutez: Decimal) -> Decimal:
    return mutez / MUTEZ_PER_TEZ


def tez_to_mutez(tez: Decimal) -> int:
    """Whole mutez, rounded down."""
    return int((tez * MUTEZ_PER_TEZ).to_integral_value(rounding=ROUND_DOWN))


def round_tez(amount: Decimal) -> Decimal:
    """Round down to 6 decimals, the smallest payable unit."""
    return amount.quantize(TEZ_PRECISION, rounding=ROUND_DOWN)


def dump_json(obj: Serializable) -> str:
    return json.dumps(obj, default=str)
