"""Read interfaces the engine consumes, plus a SQLAlchemy implementation.

The engine itself never queries storage. Callers gather a profile, the
categorized transactions and the prior-year carryover through a
:class:`ReportSource`, then hand them to :func:`~.assembler.assemble_report`.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from typing import Any, Protocol

from db.models.report import RpBalanceSnapshot, RpOrganizationProfile, RpTransaction
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from .categories import CATEGORY_BY_KEY
from .errors import ContractViolation
from .logging_setup import get_logger
from .models import Profile, Transaction
from .normalizers import round_amount

_logger = get_logger(__name__)


class ReportSource(Protocol):
    def fetch_profile(self, org_id: str, year: int) -> Profile | None: ...

    def fetch_transactions(
        self, org_id: str, year: int, category_keys: Collection[str]
    ) -> list[Transaction]:
        """Transactions for the given keys, sorted by date then id."""
        ...

    def fetch_prior_year_carryover_balance(self, org_id: str, year: int) -> int: ...


# ---------------------------------------------------------------------------
# SQLAlchemy
# ---------------------------------------------------------------------------

_TRANSACTION_FIELDS: tuple[str, ...] = tuple(Transaction.model_fields)


def _transaction_from_row(row: RpTransaction) -> Transaction:
    data: dict[str, Any] = {name: getattr(row, name) for name in _TRANSACTION_FIELDS}
    try:
        return Transaction.model_validate(data)
    except ValidationError as e:
        raise ContractViolation(f"rp_transactions id={row.id} is malformed: {e}") from e


def _profile_from_row(row: RpOrganizationProfile) -> Profile:
    try:
        return Profile.model_validate(
            {
                "id": row.id,
                "political_organization_id": row.political_organization_id,
                "financial_year": row.financial_year,
                "official_name": row.official_name,
                "official_name_kana": row.official_name_kana,
                "office_address": row.office_address,
                "office_address_building": row.office_address_building,
                "details": row.details or {},
            }
        )
    except ValidationError as e:
        raise ContractViolation(f"rp_organization_profiles id={row.id} is malformed: {e}") from e


class SqlReportSource:
    """:class:`ReportSource` backed by the ``rp_*`` tables."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def fetch_profile(self, org_id: str, year: int) -> Profile | None:
        stmt = select(RpOrganizationProfile).where(
            RpOrganizationProfile.political_organization_id == org_id,
            RpOrganizationProfile.financial_year == year,
        )
        row = self._session.execute(stmt).scalar_one_or_none()
        return _profile_from_row(row) if row is not None else None

    def fetch_transactions(
        self, org_id: str, year: int, category_keys: Collection[str]
    ) -> list[Transaction]:
        if not category_keys:
            return []
        stmt = (
            select(RpTransaction)
            .where(
                RpTransaction.political_organization_id == org_id,
                RpTransaction.financial_year == year,
                RpTransaction.category_key.in_(list(category_keys)),
            )
            .order_by(RpTransaction.transaction_date.asc().nulls_last(), RpTransaction.id.asc())
        )
        rows = self._session.execute(stmt).scalars().all()
        return [_transaction_from_row(r) for r in rows]

    def fetch_prior_year_carryover_balance(self, org_id: str, year: int) -> int:
        stmt = select(RpBalanceSnapshot.closing_balance).where(
            RpBalanceSnapshot.political_organization_id == org_id,
            RpBalanceSnapshot.financial_year == year - 1,
        )
        balance = self._session.execute(stmt).scalar_one_or_none()
        return round_amount(balance) if balance is not None else 0


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReportInputs:
    profile: Profile
    transactions_by_category: dict[str, list[Transaction]]
    prior_year_carryover: int


def load_report_inputs(source: ReportSource, org_id: str, year: int) -> ReportInputs:
    """Fetch everything needed to assemble one (organization, year) report.

    Raises ``LookupError`` when there is no profile for the pair, and
    ``ContractViolation`` when the source returns a transaction for a key
    that was not requested.
    """

    profile = source.fetch_profile(org_id, year)
    if profile is None:
        raise LookupError(f"no report profile for organization {org_id!r} year {year}")

    keys = list(CATEGORY_BY_KEY)
    grouped: dict[str, list[Transaction]] = {k: [] for k in keys}
    for tx in source.fetch_transactions(org_id, year, keys):
        bucket = grouped.get(tx.category_key)
        if bucket is None:
            raise ContractViolation(
                f"source returned transaction id={tx.id} with unrequested "
                f"category_key={tx.category_key!r}"
            )
        bucket.append(tx)

    carryover = source.fetch_prior_year_carryover_balance(org_id, year)
    _logger.info(
        "load_report_inputs:done org=%s year=%d transactions=%d carryover=%d",
        org_id,
        year,
        sum(len(v) for v in grouped.values()),
        carryover,
    )
    return ReportInputs(
        profile=profile,
        transactions_by_category=grouped,
        prior_year_carryover=carryover,
    )


__all__ = [
    "ReportInputs",
    "ReportSource",
    "SqlReportSource",
    "load_report_inputs",
]
