"""Section aggregation.

One generic fold (:func:`aggregate_section`) turns a pre-filtered, pre-sorted
transaction slice into a :class:`~.models.Section`. What differs between the
legal forms is declared once per family in :data:`SECTION_FAMILIES`:

- which category keys may reach the family;
- which side of the double entry carries the amount;
- which :class:`~.config.ReportConfig` threshold applies, if any;
- how a transaction projects onto the family's row columns;
- how long the memo and the whole remarks cell may be.

Input order is row order. The aggregators never re-sort; callers pass
transactions sorted by date ascending then by id.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from .categories import POLITICAL_ACTIVITY_FAMILIES, Family, category_keys_for
from .config import ReportConfig
from .errors import ContractViolation
from .logging_setup import get_logger
from .models import (
    BranchGrantRow,
    BusinessIncomeRow,
    ExpenseRow,
    GrantIncomeRow,
    LoanIncomeRow,
    OtherIncomeRow,
    PersonalDonationRow,
    PersonnelSection,
    PoliticalActivitySheet,
    Section,
    SectionRow,
    Transaction,
)
from .normalizers import build_remarks, resolve_amount, resolve_expense_amount, round_amount, sanitize_text

_logger = get_logger(__name__)

type AmountSide = Literal["income", "expense"]
type RowMapper = Callable[[Transaction, int, int, str], SectionRow]


@dataclass(frozen=True, slots=True)
class RemarksLimits:
    memo_max: int
    total_max: int


_INCOME_REMARKS = RemarksLimits(160, 200)
_DONATION_REMARKS = RemarksLimits(70, 100)
_EXPENSE_REMARKS = RemarksLimits(160, 100)


# ---------------------------------------------------------------------------
# Row mappers: (transaction, ichiren_no, kingaku, bikou) -> row
# ---------------------------------------------------------------------------


def _business_row(tx: Transaction, no: int, kingaku: int, bikou: str) -> BusinessIncomeRow:
    return BusinessIncomeRow(
        ichiren_no=no,
        gigyou_syurui=sanitize_text(tx.friendly_category, 200),
        kingaku=kingaku,
        bikou=bikou,
    )


def _loan_row(tx: Transaction, no: int, kingaku: int, bikou: str) -> LoanIncomeRow:
    return LoanIncomeRow(
        ichiren_no=no,
        kariiresaki=sanitize_text(tx.counterpart_name, 200),
        kingaku=kingaku,
        bikou=bikou,
    )


def _grant_row(tx: Transaction, no: int, kingaku: int, bikou: str) -> GrantIncomeRow:
    return GrantIncomeRow(
        ichiren_no=no,
        honsibu_nm=sanitize_text(tx.counterpart_name, 120),
        kingaku=kingaku,
        dt=tx.transaction_date,
        jimu_adr=sanitize_text(tx.counterpart_address, 80),
        bikou=bikou,
    )


def _other_income_row(tx: Transaction, no: int, kingaku: int, bikou: str) -> OtherIncomeRow:
    return OtherIncomeRow(
        ichiren_no=no,
        tekiyou=sanitize_text(tx.friendly_category, 200),
        kingaku=kingaku,
        bikou=bikou,
    )


def _donation_row(tx: Transaction, no: int, kingaku: int, bikou: str) -> PersonalDonationRow:
    return PersonalDonationRow(
        ichiren_no=no,
        kifusya_nm=sanitize_text(tx.donor_name, 120),
        kingaku=kingaku,
        dt=tx.transaction_date,
        adr=sanitize_text(tx.donor_address, 120),
        syokugyo=sanitize_text(tx.donor_occupation, 50),
        bikou=bikou,
    )


def _expense_row(tx: Transaction, no: int, kingaku: int, bikou: str) -> ExpenseRow:
    return ExpenseRow(
        ichiren_no=no,
        mokuteki=sanitize_text(tx.friendly_category, 200),
        kingaku=kingaku,
        dt=tx.transaction_date,
        nm=sanitize_text(tx.counterpart_name, 120),
        adr=sanitize_text(tx.counterpart_address, 120),
        bikou=bikou,
    )


def _branch_grant_row(tx: Transaction, no: int, kingaku: int, bikou: str) -> BranchGrantRow:
    return BranchGrantRow(
        ichiren_no=no,
        shisyutu_kmk=sanitize_text(tx.friendly_category, 100),
        kingaku=kingaku,
        dt=tx.transaction_date,
        honsibu_nm=sanitize_text(tx.counterpart_name, 120),
        jimu_adr=sanitize_text(tx.counterpart_address, 120),
        bikou=bikou,
    )


# ---------------------------------------------------------------------------
# Family table
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SectionFamily:
    """Per-family aggregation settings.

    ``threshold_field`` names the :class:`ReportConfig` attribute holding the
    itemization threshold; ``None`` means every transaction is itemized.
    ``row_mapper`` is ``None`` only for personnel, which is reported as a
    bare total.
    """

    family: Family
    form_id: str
    category_keys: frozenset[str]
    side: AmountSide
    threshold_field: str | None
    row_mapper: RowMapper | None
    remarks: RemarksLimits = _EXPENSE_REMARKS

    def threshold(self, config: ReportConfig) -> int | None:
        if self.threshold_field is None:
            return None
        return getattr(config, self.threshold_field)

    def resolve_exact(self, tx: Transaction) -> Decimal:
        if self.side == "income":
            return resolve_amount(tx.debit_amount, tx.credit_amount)
        return resolve_expense_amount(tx.debit_amount, tx.credit_amount)

    def resolve(self, tx: Transaction) -> int:
        return round_amount(self.resolve_exact(tx))


def _family(
    family: Family,
    form_id: str,
    side: AmountSide,
    threshold_field: str | None,
    row_mapper: RowMapper | None,
    remarks: RemarksLimits,
) -> SectionFamily:
    return SectionFamily(
        family=family,
        form_id=form_id,
        category_keys=category_keys_for(family),
        side=side,
        threshold_field=threshold_field,
        row_mapper=row_mapper,
        remarks=remarks,
    )


SECTION_FAMILIES: dict[Family, SectionFamily] = {
    f.family: f
    for f in (
        _family(Family.PERSONAL_DONATIONS, "SYUUSHI07_07", "income", None, _donation_row, _DONATION_REMARKS),
        _family(Family.BUSINESS_INCOME, "SYUUSHI07_03", "income", None, _business_row, _INCOME_REMARKS),
        _family(Family.LOAN_INCOME, "SYUUSHI07_04", "income", None, _loan_row, _INCOME_REMARKS),
        _family(Family.GRANT_INCOME, "SYUUSHI07_05", "income", None, _grant_row, _INCOME_REMARKS),
        _family(
            Family.OTHER_INCOME,
            "SYUUSHI07_06",
            "income",
            "income_threshold",
            _other_income_row,
            _INCOME_REMARKS,
        ),
        _family(Family.PERSONNEL, "SYUUSHI07_13", "expense", None, None, _EXPENSE_REMARKS),
        *(
            _family(f, "SYUUSHI07_14", "expense", "regular_expense_threshold", _expense_row, _EXPENSE_REMARKS)
            for f in (Family.UTILITY, Family.SUPPLIES, Family.OFFICE)
        ),
        *(
            _family(f, "SYUUSHI07_15", "expense", "political_expense_threshold", _expense_row, _EXPENSE_REMARKS)
            for f in POLITICAL_ACTIVITY_FAMILIES
        ),
        _family(
            Family.BRANCH_GRANTS, "SYUUSHI07_16", "expense", None, _branch_grant_row, _EXPENSE_REMARKS
        ),
    )
}


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def _check_categories(fam: SectionFamily, transactions: Sequence[Transaction]) -> None:
    for tx in transactions:
        if tx.category_key not in fam.category_keys:
            raise ContractViolation(
                f"transaction id={tx.id} category_key={tx.category_key!r} "
                f"cannot be aggregated into {fam.family.value}"
            )


def _fold(fam: SectionFamily, transactions: Sequence[Transaction], config: ReportConfig) -> Section:
    if fam.row_mapper is None:
        raise ContractViolation(f"{fam.family.value} has no row layout and cannot be itemized")
    threshold = fam.threshold(config)
    total = 0
    under: int | None = None
    rows: list[SectionRow] = []
    for tx in transactions:
        exact = fam.resolve_exact(tx)
        amount = round_amount(exact)
        total += amount
        # Income is compared before rounding; expenses are rounded first.
        cutoff = exact if fam.side == "income" else amount
        if threshold is not None and cutoff < threshold:
            under = (under or 0) + amount
            continue
        bikou = build_remarks(tx.transaction_no, tx.memo, fam.remarks.memo_max, fam.remarks.total_max)
        rows.append(fam.row_mapper(tx, len(rows) + 1, amount, bikou))
    return Section(total_amount=total, under_threshold_amount=under, rows=tuple(rows))


def aggregate_section(
    transactions: Sequence[Transaction],
    family: Family,
    *,
    config: ReportConfig | None = None,
) -> Section:
    """Fold ``transactions`` into one section of ``family``.

    Raises ``ContractViolation`` if any transaction's category key is not
    routed to ``family``. Political-activity kinds and personnel have their
    own entry points (:func:`aggregate_political_sheets`,
    :func:`aggregate_personnel`).
    """

    fam = SECTION_FAMILIES[family]
    if family in POLITICAL_ACTIVITY_FAMILIES or fam.row_mapper is None:
        raise ValueError(f"{family.value} is not a single-sheet family")
    cfg = config or ReportConfig()
    _check_categories(fam, transactions)
    section = _fold(fam, transactions, cfg)
    _logger.debug(
        "aggregate:%s in=%d rows=%d folded=%d total=%d",
        family.value,
        len(transactions),
        len(section.rows),
        len(transactions) - len(section.rows),
        section.total_amount,
    )
    return section


def _himoku_sort_key(himoku: str) -> tuple[bool, str]:
    # Code-point order, empty cost item last.
    return (himoku == "", himoku)


def aggregate_political_sheets(
    transactions: Sequence[Transaction],
    family: Family,
    *,
    config: ReportConfig | None = None,
) -> tuple[PoliticalActivitySheet, ...]:
    """Group a political-activity slice by cost item (費目) and fold each group.

    Each group becomes one sheet; numbering restarts at 1 per sheet and the
    input order is kept within a sheet.
    """

    if family not in POLITICAL_ACTIVITY_FAMILIES:
        raise ValueError(f"{family.value} is not a political-activity family")
    fam = SECTION_FAMILIES[family]
    cfg = config or ReportConfig()
    _check_categories(fam, transactions)

    groups: dict[str, list[Transaction]] = {}
    for tx in transactions:
        groups.setdefault(sanitize_text(tx.friendly_category), []).append(tx)

    sheets: list[PoliticalActivitySheet] = []
    for himoku in sorted(groups, key=_himoku_sort_key):
        folded = _fold(fam, groups[himoku], cfg)
        sheets.append(
            PoliticalActivitySheet(
                total_amount=folded.total_amount,
                under_threshold_amount=folded.under_threshold_amount,
                rows=folded.rows,
                himoku=himoku,
            )
        )
    _logger.debug(
        "aggregate:%s in=%d sheets=%d total=%d",
        family.value,
        len(transactions),
        len(sheets),
        sum(s.total_amount for s in sheets),
    )
    return tuple(sheets)


def aggregate_personnel(transactions: Sequence[Transaction]) -> PersonnelSection:
    fam = SECTION_FAMILIES[Family.PERSONNEL]
    _check_categories(fam, transactions)
    return PersonnelSection(total_amount=sum(fam.resolve(tx) for tx in transactions))


type AggregateResult = Section | tuple[PoliticalActivitySheet, ...] | PersonnelSection


def aggregate_family(
    family: Family,
    transactions: Sequence[Transaction],
    *,
    config: ReportConfig | None = None,
) -> AggregateResult:
    """Dispatch to the right aggregator for ``family``."""

    if family is Family.PERSONNEL:
        return aggregate_personnel(transactions)
    if family in POLITICAL_ACTIVITY_FAMILIES:
        return aggregate_political_sheets(transactions, family, config=config)
    return aggregate_section(transactions, family, config=config)


# ---------------------------------------------------------------------------
# Output predicates
# ---------------------------------------------------------------------------


def should_output_sheet(section: Section | PersonnelSection | Iterable[Section]) -> bool:
    """Whether a section (or any element of an array family) has content.

    Personnel never has a sheet of its own.
    """

    if isinstance(section, PersonnelSection):
        return False
    if isinstance(section, Section):
        return bool(section.rows) or section.total_amount > 0
    return any(should_output_sheet(s) for s in section)


__all__ = [
    "AggregateResult",
    "AmountSide",
    "RemarksLimits",
    "SECTION_FAMILIES",
    "SectionFamily",
    "aggregate_family",
    "aggregate_personnel",
    "aggregate_political_sheets",
    "aggregate_section",
    "should_output_sheet",
]
