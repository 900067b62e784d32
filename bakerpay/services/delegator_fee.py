"""Per-delegator fee overrides.

A fee is a percentage in [0, 100] kept by the baker. Every calculation
validates the fee first. Both parts are computed without rounding, so
`net_payment + fee_amount == gross` holds whenever `gross` itself fits the
caller's decimal context.
"""

from dataclasses import replace
from decimal import Decimal, localcontext

import structlog

from bakerpay.repositories.delegator_fee import DelegatorFeeRepository
from bakerpay.services._helpers import now_iso, to_decimal
from bakerpay.services.schemas.pool import DelegatorFee
from bakerpay.services.validation import MAX_FEE, MIN_FEE, validate_fee

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _exact_precision(gross: Decimal, rate: Decimal) -> int:
    # enough digits for gross * rate / 100 and gross minus that, with no rounding
    scale: int = max(0, -int(rate.as_tuple().exponent))
    return len(gross.as_tuple().digits) + len(rate.as_tuple().digits) + scale + 4


def fee_amount(fee: Decimal | int | str, gross: Decimal) -> Decimal:
    rate: Decimal = validate_fee(fee)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, _exact_precision(gross, rate))
        return gross * rate / 100


def net_payment(fee: Decimal | int | str, gross: Decimal) -> Decimal:
    # gross * (1 - fee/100), written as a difference so the parts add up to gross
    rate: Decimal = validate_fee(fee)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, _exact_precision(gross, rate))
        return gross - gross * rate / 100


def is_zero_fee(fee: Decimal | int | str) -> bool:
    return validate_fee(fee) == MIN_FEE


def is_maximum_fee(fee: Decimal | int | str) -> bool:
    return validate_fee(fee) == MAX_FEE


def differs_from(fee: Decimal | int | str, baseline: Decimal | int | str) -> bool:
    return validate_fee(fee) != to_decimal(baseline)


def new_delegator_fee(baker_id: str, address: str, fee: Decimal | int | str) -> DelegatorFee:
    ts: str = now_iso()
    return DelegatorFee(
        baker_id=baker_id,
        address=address,
        fee=validate_fee(fee),
        created_at=ts,
        updated_at=ts,
    )


def update_fee(record: DelegatorFee, fee: Decimal | int | str) -> DelegatorFee:
    return replace(record, fee=validate_fee(fee), updated_at=now_iso())


def resolve_fee(
    repository: DelegatorFeeRepository,
    baker_id: str,
    address: str,
    default_fee: Decimal,
) -> Decimal:
    """The delegator's override when one is stored, otherwise `default_fee`."""
    override: DelegatorFee | None = repository.get(baker_id, address)
    if override is None:
        return validate_fee(default_fee)
    logger.debug("Custom fee", baker=baker_id, address=address, fee=str(override.fee))
    return validate_fee(override.fee)
