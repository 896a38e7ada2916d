from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: rp_transactions
# ---------------------------


class RpTransaction(Base):
    """A categorized bookkeeping row as imported for reporting.

    Rows are written by the import pipeline; the report engine only reads
    them. ``category_key`` is the stable machine key (``"utilities"``,
    ``"other-income"``, ...) that routes the row to one report section.
    """

    __tablename__ = "rp_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    political_organization_id: Mapped[str] = mapped_column(String, nullable=False)
    financial_year: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_no: Mapped[str] = mapped_column(String, nullable=False, server_default=text("''"))
    transaction_type: Mapped[str] = mapped_column(String, nullable=False)
    category_key: Mapped[str] = mapped_column(String, nullable=False)
    transaction_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    debit_amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    credit_amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    friendly_category: Mapped[str | None] = mapped_column(Text, nullable=True)
    label: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    counterpart_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    counterpart_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    donor_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    donor_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    donor_occupation: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "transaction_type in "
            "('income','expense','offset_income','offset_expense','non_cash_journal')",
            name="ck_rp_tx_transaction_type",
        ),
        # Negative amounts are rejected at read time as well; keep both.
        CheckConstraint("debit_amount >= 0", name="ck_rp_tx_debit_non_negative"),
        CheckConstraint("credit_amount >= 0", name="ck_rp_tx_credit_non_negative"),
        Index(
            "ix_rp_tx_org_year_category",
            "political_organization_id",
            "financial_year",
            "category_key",
        ),
    )


# ---------------------------
# rp_organization_profiles
# ---------------------------


class RpOrganizationProfile(Base):
    """Per-year identity and officer metadata for an organization.

    ``details`` holds the nested officer/contact/fund-management document
    as JSON; it is validated into the engine's pydantic model on read.
    """

    __tablename__ = "rp_organization_profiles"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    political_organization_id: Mapped[str] = mapped_column(String, nullable=False)
    financial_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    official_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    official_name_kana: Mapped[str | None] = mapped_column(Text, nullable=True)
    office_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    office_address_building: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "political_organization_id", "financial_year", name="uq_rp_profile_org_year"
        ),
    )


# ---------------------------
# rp_balance_snapshots
# ---------------------------


class RpBalanceSnapshot(Base):
    """Closing cash balance of one organization at the end of a year."""

    __tablename__ = "rp_balance_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    political_organization_id: Mapped[str] = mapped_column(String, nullable=False)
    financial_year: Mapped[int] = mapped_column(Integer, nullable=False)
    closing_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "political_organization_id", "financial_year", name="uq_rp_balance_org_year"
        ),
    )


__all__ = [
    "Base",
    "RpBalanceSnapshot",
    "RpOrganizationProfile",
    "RpTransaction",
]
