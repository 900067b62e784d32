"""SQLAlchemy ORM models for bond pools and delegator fee overrides."""

from decimal import Decimal

from sqlalchemy import MetaData, Numeric
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Tez amounts carry 6 decimals (1 mutez); percentages use the same scale.
Amount = Numeric(precision=28, scale=6, asdecimal=True)


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


class BondPoolSettingsRow(Base):
    __tablename__ = "bond_pool_settings"

    baker_id: Mapped[str] = mapped_column(primary_key=True)
    enabled: Mapped[bool] = mapped_column(nullable=False, default=False)
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)


class BondPoolMemberRow(Base):
    __tablename__ = "bond_pool_members"

    baker_id: Mapped[str] = mapped_column(primary_key=True)
    address: Mapped[str] = mapped_column(primary_key=True)
    amount: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    name: Mapped[str | None] = mapped_column()
    admin_charge: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal(0))
    is_manager: Mapped[bool] = mapped_column(nullable=False, default=False)
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)


class DelegatorFeeRow(Base):
    __tablename__ = "delegator_fees"

    baker_id: Mapped[str] = mapped_column(primary_key=True)
    address: Mapped[str] = mapped_column(primary_key=True)
    fee: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)
