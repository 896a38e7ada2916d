"""Totals, carryover and the 51-position presence flag.

The flag string tells the receiving system which numbered forms carry
content. Receivers validate by position, so the positions live in one
ordered table (:data:`FLAG_TABLE`) rather than in conditionals spread over
the calculator. Positions not in the table are always ``"0"``.
"""

from __future__ import annotations

from collections.abc import Callable

from .categories import POLITICAL_ACTIVITY_FAMILIES, REGULAR_EXPENSE_FAMILIES, Family
from .models import (
    ExpenseData,
    ExpenseSummary,
    ExpenseSummaryItem,
    PoliticalActivityExpenseSummary,
    PoliticalActivityTotals,
    RegularExpenseSummary,
    ReportData,
    SummaryData,
)
from .sections import should_output_sheet

FLAG_LENGTH = 51

type FlagPredicate = Callable[[ReportData], bool]


def _always(_: ReportData) -> bool:
    return True


def _expense_breakdown_present(report: ReportData) -> bool:
    expenses = report.expenses
    return (
        expenses.personnel.total_amount > 0
        or regular_expense_sheet_present(expenses)
        or political_activity_sheet_present(expenses)
    )


def _regular(family: Family) -> FlagPredicate:
    return lambda r: should_output_sheet(r.expenses.regular(family))


def _political(family: Family) -> FlagPredicate:
    return lambda r: should_output_sheet(r.expenses.political(family))


# (1-based position, label, predicate)
FLAG_TABLE: tuple[tuple[int, str, FlagPredicate], ...] = (
    (1, "団体の基本情報", _always),
    (2, "収支の総括表", _always),
    (3, "事業による収入", lambda r: should_output_sheet(r.income.business_income)),
    (4, "借入金", lambda r: should_output_sheet(r.income.loan_income)),
    (5, "本部又は支部から供与された交付金", lambda r: should_output_sheet(r.income.grant_income)),
    (6, "その他の収入", lambda r: should_output_sheet(r.income.other_income)),
    (7, "寄附の明細", lambda r: should_output_sheet(r.donations.personal_donations)),
    (21, "支出項目別金額の内訳", _expense_breakdown_present),
    (22, "光熱水費", _regular(Family.UTILITY)),
    (23, "備品・消耗品費", _regular(Family.SUPPLIES)),
    (24, "事務所費", _regular(Family.OFFICE)),
    (25, "組織活動費", _political(Family.ORGANIZATION)),
    (26, "選挙関係費", _political(Family.ELECTION)),
    (27, "機関紙誌の発行事業費", _political(Family.PUBLICATION)),
    (28, "宣伝事業費", _political(Family.ADVERTISING)),
    (29, "政治資金パーティー開催事業費", _political(Family.FUNDRAISING_PARTY)),
    (30, "その他の事業費", _political(Family.OTHER_BUSINESS)),
    (31, "調査研究費", _political(Family.RESEARCH)),
    (32, "寄附・交付金", _political(Family.DONATION_GRANT)),
    (33, "その他の経費", _political(Family.OTHER_POLITICAL)),
    (34, "本部又は支部に対する交付金", lambda r: should_output_sheet(r.expenses.branch_grants)),
)


def regular_expense_sheet_present(expenses: ExpenseData) -> bool:
    return any(should_output_sheet(expenses.regular(f)) for f in REGULAR_EXPENSE_FAMILIES)


def political_activity_sheet_present(expenses: ExpenseData) -> bool:
    return any(should_output_sheet(expenses.political(f)) for f in POLITICAL_ACTIVITY_FAMILIES)


def build_presence_flag(report: ReportData) -> str:
    """Return the 51-character ``SYUUSHI_UMU`` flag string for ``report``."""

    bits = ["0"] * FLAG_LENGTH
    for position, _label, predicate in FLAG_TABLE:
        if predicate(report):
            bits[position - 1] = "1"
    return "".join(bits)


# ---------------------------------------------------------------------------
# Totals (SYUUSHI07_02)
# ---------------------------------------------------------------------------


def political_activity_totals(expenses: ExpenseData) -> PoliticalActivityTotals:
    return PoliticalActivityTotals(
        **{f.value: sum(s.total_amount for s in expenses.political(f)) for f in POLITICAL_ACTIVITY_FAMILIES}
    )


def compute_summary(report: ReportData) -> SummaryData:
    """Compute the totals-and-carryover record.

    The opening balance is ``report.prior_year_carryover``.

    Notes
    -----
    Donor categories this engine does not assemble (specific, corporate and
    political-organization donations, brokered and anonymous party
    donations) contribute nothing to the totals and stay ``None`` in the
    result. ``regular_expense_total`` leaves personnel out; personnel only
    appears on the SYUUSHI07_13 breakdown.
    """

    personal = report.donations.personal_donations.total_amount
    # specific / corporate / political-org donations add nothing
    donation_subtotal = personal
    # brokered / anonymous party donations add nothing
    donation_total = donation_subtotal

    income = report.income
    current_year_income = (
        donation_total
        + income.business_income.total_amount
        + income.loan_income.total_amount
        + income.grant_income.total_amount
        + income.other_income.total_amount
    )
    total_income = report.prior_year_carryover + current_year_income

    expenses = report.expenses
    regular_total = sum(expenses.regular(f).total_amount for f in REGULAR_EXPENSE_FAMILIES)
    political = political_activity_totals(expenses)
    total_expense = regular_total + political.total

    return SummaryData(
        total_income=total_income,
        prior_year_carryover=report.prior_year_carryover,
        current_year_income=current_year_income,
        total_expense=total_expense,
        next_year_carryover=total_income - total_expense,
        personal_donations=personal,
        donation_subtotal=donation_subtotal,
        donation_total=donation_total,
        regular_expense_total=regular_total,
        political_activity_expense_total=political.total,
        political_activity_expenses=political,
    )


# ---------------------------------------------------------------------------
# Expense breakdown (SYUUSHI07_13)
# ---------------------------------------------------------------------------


def _item(amount: int | None) -> ExpenseSummaryItem:
    return ExpenseSummaryItem(amount=amount)


def _positive_or_none(amount: int) -> int | None:
    return amount if amount > 0 else None


def compute_expense_summary(expenses: ExpenseData) -> ExpenseSummary:
    """Build the expense breakdown.

    Unlike :func:`compute_summary`, the regular subtotal here includes
    personnel. Regular items print blank when zero; political items always
    print a number.
    """

    personnel = expenses.personnel.total_amount
    utility = expenses.utility.total_amount
    supplies = expenses.supplies.total_amount
    office = expenses.office.total_amount
    regular_subtotal = personnel + utility + supplies + office

    p = political_activity_totals(expenses)
    business = p.publication + p.advertising + p.fundraising_party + p.other_business
    political_subtotal = (
        p.organization + p.election + business + p.research + p.donation_grant + p.other_political
    )

    return ExpenseSummary(
        regular=RegularExpenseSummary(
            personnel=_item(_positive_or_none(personnel)),
            utility=_item(_positive_or_none(utility)),
            supplies=_item(_positive_or_none(supplies)),
            office=_item(_positive_or_none(office)),
            subtotal=_item(regular_subtotal),
        ),
        political=PoliticalActivityExpenseSummary(
            organization=_item(p.organization),
            election=_item(p.election),
            business=_item(business),
            publication=_item(p.publication),
            advertising=_item(p.advertising),
            fundraising_party=_item(p.fundraising_party),
            other_business=_item(p.other_business),
            research=_item(p.research),
            donation_grant=_item(p.donation_grant),
            other_political=_item(p.other_political),
            subtotal=_item(political_subtotal),
        ),
        total_amount=regular_subtotal + political_subtotal,
    )


def should_output_expense_summary(summary: ExpenseSummary) -> bool:
    return summary.total_amount > 0


__all__ = [
    "FLAG_LENGTH",
    "FLAG_TABLE",
    "build_presence_flag",
    "compute_expense_summary",
    "compute_summary",
    "political_activity_sheet_present",
    "political_activity_totals",
    "regular_expense_sheet_present",
    "should_output_expense_summary",
]
