"""Repository for per-delegator fee overrides."""

from decimal import Decimal

from sqlalchemy import select

from bakerpay.repositories.base import BaseRepository
from bakerpay.services.schemas.pool import DelegatorFee
from bakerpay.services.validation import validate_fee
from db.models import DelegatorFeeRow


class DelegatorFeeRepository(BaseRepository[DelegatorFeeRow, DelegatorFee]):
    model = DelegatorFeeRow

    def _to_record(self, row: DelegatorFeeRow) -> DelegatorFee:
        return DelegatorFee(
            baker_id=row.baker_id,
            address=row.address,
            fee=Decimal(row.fee),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def get(self, baker_id: str, address: str) -> DelegatorFee | None:
        row = self._get_row(baker_id, address)
        return self._to_record(row) if row else None

    def save(self, record: DelegatorFee) -> DelegatorFee:
        """Insert or update; an out-of-range fee raises before anything is written."""
        fee: Decimal = validate_fee(record.fee)
        row = self._get_row(record.baker_id, record.address)
        if row is None:
            row = DelegatorFeeRow(
                baker_id=record.baker_id,
                address=record.address,
                created_at=record.created_at,
            )
        row.fee = fee
        row.updated_at = record.updated_at
        self._save(row)
        return self._to_record(row)

    def delete(self, baker_id: str, address: str) -> bool:
        row = self._get_row(baker_id, address)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        return True

    def list_by_baker(self, baker_id: str) -> list[DelegatorFee]:
        stmt = (
            select(DelegatorFeeRow)
            .where(DelegatorFeeRow.baker_id == baker_id)
            .order_by(DelegatorFeeRow.address)
        )
        return self._all(stmt)

    def list_by_address(self, address: str) -> list[DelegatorFee]:
        stmt = (
            select(DelegatorFeeRow)
            .where(DelegatorFeeRow.address == address)
            .order_by(DelegatorFeeRow.baker_id)
        )
        return self._all(stmt)

    def count_by_baker(self, baker_id: str) -> int:
        return self._count(DelegatorFeeRow.baker_id == baker_id)
