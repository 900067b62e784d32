"""Guards for user-supplied amounts; they raise before anything is changed."""

from decimal import Decimal

from bakerpay.services._helpers import to_decimal
from bakerpay.services.errors import InvalidAdminChargeError, InvalidAmountError, InvalidFeeError

MIN_FEE: Decimal = Decimal(0)
MAX_FEE: Decimal = Decimal(100)


def validate_amount(amount: Decimal | int | str) -> Decimal:
    value: Decimal = to_decimal(amount)
    if not value.is_finite() or value <= 0:
        raise InvalidAmountError("amount", amount, "Amount must be positive")
    return value


def validate_admin_charge(charge: Decimal | int | str) -> Decimal:
    value: Decimal = to_decimal(charge)
    if not value.is_finite() or value < 0:
        raise InvalidAdminChargeError(
            "admin_charge", charge, "Administrative charge cannot be negative"
        )
    return value


def validate_fee(fee: Decimal | int | str) -> Decimal:
    value: Decimal = to_decimal(fee)
    if not value.is_finite() or not MIN_FEE <= value <= MAX_FEE:
        raise InvalidFeeError("fee", fee, "Fee must be between 0 and 100")
    return value
