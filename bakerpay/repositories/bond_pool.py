"""Repositories for bond pool settings and members."""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from bakerpay.repositories.base import BaseRepository
from bakerpay.services.schemas.pool import BondPoolMember, BondPoolSettings
from bakerpay.services.validation import validate_admin_charge, validate_amount
from db.models import BondPoolMemberRow, BondPoolSettingsRow


class BondPoolSettingsRepository(BaseRepository[BondPoolSettingsRow, BondPoolSettings]):
    model = BondPoolSettingsRow

    def _to_record(self, row: BondPoolSettingsRow) -> BondPoolSettings:
        return BondPoolSettings(
            baker_id=row.baker_id,
            enabled=bool(row.enabled),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def get(self, baker_id: str) -> BondPoolSettings | None:
        row = self._get_row(baker_id)
        return self._to_record(row) if row else None

    def save(self, settings: BondPoolSettings) -> BondPoolSettings:
        row = self._get_row(settings.baker_id)
        if row is None:
            row = BondPoolSettingsRow(baker_id=settings.baker_id, created_at=settings.created_at)
        row.enabled = settings.enabled
        row.updated_at = settings.updated_at
        self._save(row)
        return self._to_record(row)


class BondPoolRepository(BaseRepository[BondPoolMemberRow, BondPoolMember]):
    """Bond pool members, plus the pool's settings row."""

    model = BondPoolMemberRow

    def __init__(self, session: Session):
        super().__init__(session)
        self.settings = BondPoolSettingsRepository(session)

    def _to_record(self, row: BondPoolMemberRow) -> BondPoolMember:
        return BondPoolMember(
            baker_id=row.baker_id,
            address=row.address,
            amount=Decimal(row.amount),
            admin_charge=Decimal(row.admin_charge),
            created_at=row.created_at,
            updated_at=row.updated_at,
            name=row.name,
            is_manager=bool(row.is_manager),
        )

    # -- settings ----------------------------------------------------------

    def get_settings(self, baker_id: str) -> BondPoolSettings | None:
        return self.settings.get(baker_id)

    def save_settings(self, settings: BondPoolSettings) -> BondPoolSettings:
        return self.settings.save(settings)

    def is_enabled(self, baker_id: str) -> bool:
        settings = self.settings.get(baker_id)
        return settings.enabled if settings else False

    # -- members -----------------------------------------------------------

    def get_member(self, baker_id: str, address: str) -> BondPoolMember | None:
        row = self._get_row(baker_id, address)
        return self._to_record(row) if row else None

    def save_member(self, member: BondPoolMember) -> BondPoolMember:
        amount: Decimal = validate_amount(member.amount)
        charge: Decimal = validate_admin_charge(member.admin_charge)
        row = self._get_row(member.baker_id, member.address)
        if row is None:
            row = BondPoolMemberRow(
                baker_id=member.baker_id,
                address=member.address,
                created_at=member.created_at,
            )
        row.amount = amount
        row.admin_charge = charge
        row.name = member.name
        row.is_manager = member.is_manager
        row.updated_at = member.updated_at
        self._save(row)
        return self._to_record(row)

    def list_members(self, baker_id: str) -> list[BondPoolMember]:
        stmt = (
            select(BondPoolMemberRow)
            .where(BondPoolMemberRow.baker_id == baker_id)
            .order_by(BondPoolMemberRow.amount.desc(), BondPoolMemberRow.address)
        )
        return self._all(stmt)

    def list_managers(self, baker_id: str) -> list[BondPoolMember]:
        stmt = (
            select(BondPoolMemberRow)
            .where(
                BondPoolMemberRow.baker_id == baker_id,
                BondPoolMemberRow.is_manager.is_(True),
            )
            .order_by(BondPoolMemberRow.amount.desc(), BondPoolMemberRow.address)
        )
        return self._all(stmt)

    def total_pool_amount(self, baker_id: str) -> Decimal:
        return sum((m.amount for m in self.list_members(baker_id)), Decimal(0))

    def total_admin_charges(self, baker_id: str) -> Decimal:
        return sum((m.admin_charge for m in self.list_members(baker_id)), Decimal(0))

    def count_members(self, baker_id: str) -> int:
        return self._count(BondPoolMemberRow.baker_id == baker_id)
