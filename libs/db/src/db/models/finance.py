from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: sf_transactions
# ---------------------------


class SfTransaction(Base):
    __tablename__ = "sf_transactions"

    # Records are scoped per owner: ``tg_<telegram id>`` when the Mini App
    # identity resolves, otherwise the shared anonymous owner.
    owner_id: Mapped[str] = mapped_column(String, primary_key=True)
    id: Mapped[str] = mapped_column(String, primary_key=True)
    # Magnitude in the base currency; the sign lives in ``type``.
    amount: Mapped[float] = mapped_column(Numeric(18, 2, asdecimal=False), nullable=False)
    original_amount: Mapped[float | None] = mapped_column(
        Numeric(18, 2, asdecimal=False), nullable=True
    )
    original_currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(7), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("type in ('INCOME','EXPENSE')", name="ck_sf_tx_type"),
        CheckConstraint("amount >= 0", name="ck_sf_tx_amount_magnitude"),
    )


# ---------------------------
# Reference: sf_settings
# ---------------------------


class SfSetting(Base):
    """Process-wide user preferences stored as key/value strings."""

    __tablename__ = "sf_settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


__all__ = [
    "Base",
    "SfSetting",
    "SfTransaction",
]
