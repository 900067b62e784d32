"""Shared exception hierarchy for bakerpay services."""

# ── Indexer ───────────────────────────────────────────────────────────────────


class IndexerClientError(Exception):
    """Base exception for indexer client errors."""


class IndexerTransportError(IndexerClientError):
    """Request failed: network error, timeout, non-2xx status or bad JSON."""

    def __init__(self, endpoint: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{endpoint}: {message}")
        self.endpoint = endpoint
        self.message = message
        self.status_code = status_code


# ── Validation ────────────────────────────────────────────────────────────────


class PayoutValidationError(ValueError):
    """A value was rejected before any record was changed."""

    def __init__(self, field: str, value: object, message: str) -> None:
        super().__init__(f"{message} ({field}={value!r})")
        self.field = field
        self.value = value


class InvalidAmountError(PayoutValidationError):
    """Bond pool contribution must be positive."""


class InvalidAdminChargeError(PayoutValidationError):
    """Administrative charge cannot be negative."""


class InvalidFeeError(PayoutValidationError):
    """Delegator fee must be within 0..100."""

