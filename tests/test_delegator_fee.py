"""Tests for bakerpay.services.delegator_fee."""

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from bakerpay.repositories.delegator_fee import DelegatorFeeRepository
from bakerpay.services.delegator_fee import (
    differs_from,
    fee_amount,
    is_maximum_fee,
    is_zero_fee,
    net_payment,
    new_delegator_fee,
    resolve_fee,
    update_fee,
)
from bakerpay.services.errors import InvalidFeeError

BAKER = "tz1ABC"


def test_fee_and_net_split_gross() -> None:
    assert fee_amount(Decimal(5), Decimal(200)) == Decimal(10)
    assert net_payment(Decimal(5), Decimal(200)) == Decimal(190)


@pytest.mark.parametrize("fee", ["0", "7.5", "33.333333", "100"])
@pytest.mark.parametrize("gross", ["0", "0.000001", "1234.567891", "100000"])
def test_net_plus_fee_is_gross(fee: str, gross: str) -> None:
    g = Decimal(gross)

    assert net_payment(Decimal(fee), g) + fee_amount(Decimal(fee), g) == g


@pytest.mark.parametrize(
    ("fee", "gross"),
    [
        ("7.532741", "282159839796519140607801.1703"),
        ("1E-20", "1234567890123456789012.345678"),
        ("99.999999", "9999999999999999999999.999999"),
    ],
)
def test_net_plus_fee_is_gross_at_full_precision(fee: str, gross: str) -> None:
    g = Decimal(gross)

    net = net_payment(Decimal(fee), g)
    fee_part = fee_amount(Decimal(fee), g)

    assert net + fee_part == g
    assert fee_part > 0


@pytest.mark.parametrize("fee", ["150", "-1", "100.000001", "NaN", "Infinity"])
def test_out_of_range_fee_rejected(fee: str) -> None:
    with pytest.raises(InvalidFeeError) as exc_info:
        fee_amount(Decimal(fee), Decimal(100))

    assert exc_info.value.field == "fee"


def test_new_record_rejects_fee_150() -> None:
    with pytest.raises(InvalidFeeError):
        new_delegator_fee(BAKER, "tz1D", Decimal(150))


def test_update_fee_keeps_original_on_failure() -> None:
    record = new_delegator_fee(BAKER, "tz1D", Decimal(5))

    with pytest.raises(InvalidFeeError):
        update_fee(record, Decimal(101))
    assert record.fee == Decimal(5)
    assert update_fee(record, "12").fee == Decimal(12)


def test_predicates() -> None:
    assert is_zero_fee(Decimal(0))
    assert not is_zero_fee(Decimal("0.1"))
    assert is_maximum_fee(Decimal(100))
    assert not is_maximum_fee(Decimal("99.99"))
    assert differs_from(Decimal(7), Decimal(5))
    assert not differs_from(Decimal("5.0"), Decimal(5))


def test_resolve_fee_uses_override(session: Session) -> None:
    repo = DelegatorFeeRepository(session)
    repo.save(new_delegator_fee(BAKER, "tz1Custom", Decimal("2.5")))

    assert resolve_fee(repo, BAKER, "tz1Custom", Decimal(5)) == Decimal("2.5")
    assert resolve_fee(repo, BAKER, "tz1Other", Decimal(5)) == Decimal(5)


def test_resolve_fee_validates_default(session: Session) -> None:
    repo = DelegatorFeeRepository(session)

    with pytest.raises(InvalidFeeError):
        resolve_fee(repo, BAKER, "tz1D", Decimal(120))
