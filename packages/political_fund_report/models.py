"""Data models for report assembly.

Two kinds of model live here:

- Input records that arrive from external collaborators (``Transaction``,
  ``Profile``) are pydantic models. They are frozen and reject unknown
  fields so a malformed fetch fails at the boundary.
- Everything the engine derives (rows, sections, ``ReportData``,
  ``SummaryData``) is a frozen ``dataclass`` with ``slots=True``. Values are
  created fresh on every build and never mutated.

Row field names follow the XML column they are written to (``kingaku`` for
KINGAKU, ``bikou`` for BIKOU, ...) so the serializers read as a straight
column listing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .categories import POLITICAL_ACTIVITY_FAMILIES, REGULAR_EXPENSE_FAMILIES, Family

# ---------------------------------------------------------------------------
# Input records (external, read-only)
# ---------------------------------------------------------------------------

type TransactionType = Literal[
    "income", "expense", "offset_income", "offset_expense", "non_cash_journal"
]


class Transaction(BaseModel):
    """One double-entry bookkeeping row, already categorized.

    ``debit_amount`` and ``credit_amount`` are both non-negative; which side
    carries the economic value depends on the section reading the row
    (income sections prefer credit, expense sections prefer debit).
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    id: int
    transaction_no: str = ""
    transaction_type: TransactionType
    category_key: str
    financial_year: int
    transaction_date: date | None = None
    debit_amount: Decimal = Field(default=Decimal(0), ge=0)
    credit_amount: Decimal = Field(default=Decimal(0), ge=0)
    friendly_category: str | None = None
    label: str | None = None
    description: str | None = None
    memo: str | None = None
    counterpart_name: str | None = None
    counterpart_address: str | None = None
    donor_name: str | None = None
    donor_address: str | None = None
    donor_occupation: str | None = None

    @field_validator("category_key")
    @classmethod
    def _category_key_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("category_key must be non-empty")
        return v


class _ProfileModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)


class PersonName(_ProfileModel):
    last_name: str = ""
    first_name: str = ""


class ContactPerson(_ProfileModel):
    last_name: str = ""
    first_name: str = ""
    tel: str = ""


class Period(_ProfileModel):
    """A period given as two wareki strings (e.g. ``"R6/4/1"``)."""

    start: str = ""
    end: str = ""


class FundManagement(_ProfileModel):
    public_position_name: str = ""
    public_position_type: Literal["", "1", "2", "3", "4"] = ""
    applicant: PersonName | None = None
    periods: tuple[Period, ...] = ()


class DietMember(_ProfileModel):
    last_name: str = ""
    first_name: str = ""
    chamber: Literal["", "1", "2"] = ""
    position_type: Literal["", "1", "2", "3", "4"] = ""


class DietMemberRelation(_ProfileModel):
    # 0: none, 1: type-1 organization, 2: type-2 organization, 3: both
    type: str = "0"
    members: tuple[DietMember, ...] = ()
    periods: tuple[Period, ...] = ()


class ProfileDetails(_ProfileModel):
    representative: PersonName | None = None
    accountant: PersonName | None = None
    contact_persons: tuple[ContactPerson, ...] = ()
    organization_type: str = ""
    activity_area: str = ""
    fund_management: FundManagement | None = None
    diet_member_relation: DietMemberRelation | None = None
    specific_party_date: str = ""


class Profile(_ProfileModel):
    """Organization identity and officer metadata for SYUUSHI07_01."""

    id: str
    political_organization_id: str
    financial_year: int | None
    official_name: str | None = None
    official_name_kana: str | None = None
    office_address: str | None = None
    office_address_building: str | None = None
    details: ProfileDetails = Field(default_factory=ProfileDetails)


# ---------------------------------------------------------------------------
# Section rows (one shape per family)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BusinessIncomeRow:
    ichiren_no: int
    gigyou_syurui: str
    kingaku: int
    bikou: str = ""


@dataclass(frozen=True, slots=True)
class LoanIncomeRow:
    ichiren_no: int
    kariiresaki: str
    kingaku: int
    bikou: str = ""


@dataclass(frozen=True, slots=True)
class GrantIncomeRow:
    ichiren_no: int
    honsibu_nm: str
    kingaku: int
    dt: date | None
    jimu_adr: str
    bikou: str = ""


@dataclass(frozen=True, slots=True)
class OtherIncomeRow:
    ichiren_no: int
    tekiyou: str
    kingaku: int
    bikou: str = ""


@dataclass(frozen=True, slots=True)
class PersonalDonationRow:
    ichiren_no: int
    kifusya_nm: str
    kingaku: int
    dt: date | None
    adr: str
    syokugyo: str
    bikou: str = ""
    seq_no: str = ""
    # "0": no tax-deduction receipt needed, "1": needed
    zeigakukoujyo: str = "0"
    # "0": detail row, "1": subtotal row
    rowkbn: str = "0"


@dataclass(frozen=True, slots=True)
class ExpenseRow:
    """Detail row shared by SYUUSHI07_14 and SYUUSHI07_15."""

    ichiren_no: int
    mokuteki: str
    kingaku: int
    dt: date | None
    nm: str
    adr: str
    bikou: str = ""
    ryousyu: int | None = None


@dataclass(frozen=True, slots=True)
class BranchGrantRow:
    ichiren_no: int
    shisyutu_kmk: str
    kingaku: int
    dt: date | None
    honsibu_nm: str
    jimu_adr: str
    bikou: str = ""


type SectionRow = (
    BusinessIncomeRow
    | LoanIncomeRow
    | GrantIncomeRow
    | OtherIncomeRow
    | PersonalDonationRow
    | ExpenseRow
    | BranchGrantRow
)

RowT = TypeVar("RowT")


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Section(Generic[RowT]):
    """Aggregated content of one sheet.

    ``total_amount == sum(r.kingaku for r in rows) + (under_threshold_amount or 0)``
    always holds. ``under_threshold_amount`` is ``None`` when no transaction
    was folded, which the XML distinguishes from an explicit ``0``.
    """

    total_amount: int
    under_threshold_amount: int | None
    rows: tuple[RowT, ...]

    @classmethod
    def empty(cls) -> Section[RowT]:
        return cls(total_amount=0, under_threshold_amount=None, rows=())


@dataclass(frozen=True, slots=True)
class PoliticalActivitySheet(Section[ExpenseRow]):
    """One 費目 (cost item) sheet of a political-activity expense kind."""

    himoku: str = ""


@dataclass(frozen=True, slots=True)
class PersonnelSection:
    # Personnel costs only feed the SYUUSHI07_13 summary; no detail rows.
    total_amount: int = 0


@dataclass(frozen=True, slots=True)
class DonationData:
    personal_donations: Section[PersonalDonationRow] = field(default_factory=Section.empty)


@dataclass(frozen=True, slots=True)
class IncomeData:
    business_income: Section[BusinessIncomeRow] = field(default_factory=Section.empty)
    loan_income: Section[LoanIncomeRow] = field(default_factory=Section.empty)
    grant_income: Section[GrantIncomeRow] = field(default_factory=Section.empty)
    other_income: Section[OtherIncomeRow] = field(default_factory=Section.empty)


@dataclass(frozen=True, slots=True)
class ExpenseData:
    personnel: PersonnelSection = field(default_factory=PersonnelSection)
    utility: Section[ExpenseRow] = field(default_factory=Section.empty)
    supplies: Section[ExpenseRow] = field(default_factory=Section.empty)
    office: Section[ExpenseRow] = field(default_factory=Section.empty)
    organization: tuple[PoliticalActivitySheet, ...] = ()
    election: tuple[PoliticalActivitySheet, ...] = ()
    publication: tuple[PoliticalActivitySheet, ...] = ()
    advertising: tuple[PoliticalActivitySheet, ...] = ()
    fundraising_party: tuple[PoliticalActivitySheet, ...] = ()
    other_business: tuple[PoliticalActivitySheet, ...] = ()
    research: tuple[PoliticalActivitySheet, ...] = ()
    donation_grant: tuple[PoliticalActivitySheet, ...] = ()
    other_political: tuple[PoliticalActivitySheet, ...] = ()
    branch_grants: Section[BranchGrantRow] = field(default_factory=Section.empty)

    def regular(self, family: Family) -> Section[ExpenseRow]:
        if family not in REGULAR_EXPENSE_FAMILIES:
            raise ValueError(f"not a regular-expense family: {family}")
        return getattr(self, family.value)

    def political(self, family: Family) -> tuple[PoliticalActivitySheet, ...]:
        if family not in POLITICAL_ACTIVITY_FAMILIES:
            raise ValueError(f"not a political-activity family: {family}")
        return getattr(self, family.value)


@dataclass(frozen=True, slots=True)
class ReportData:
    """Everything needed to serialize one (organization, financial year)."""

    profile: Profile
    donations: DonationData = field(default_factory=DonationData)
    income: IncomeData = field(default_factory=IncomeData)
    expenses: ExpenseData = field(default_factory=ExpenseData)
    # closing balance of financial_year - 1
    prior_year_carryover: int = 0

    @property
    def organization_id(self) -> str:
        return self.profile.political_organization_id

    @property
    def financial_year(self) -> int | None:
        return self.profile.financial_year


# ---------------------------------------------------------------------------
# Derived summaries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PoliticalActivityTotals:
    """Per-kind totals, each already reduced across its cost-item sheets."""

    organization: int = 0
    election: int = 0
    publication: int = 0
    advertising: int = 0
    fundraising_party: int = 0
    other_business: int = 0
    research: int = 0
    donation_grant: int = 0
    other_political: int = 0

    @property
    def total(self) -> int:
        return sum(getattr(self, f.value) for f in POLITICAL_ACTIVITY_FAMILIES)


@dataclass(frozen=True, slots=True)
class SummaryData:
    """Totals-and-carryover record (SYUUSHI07_02).

    Fields for donor categories this engine does not report are ``None``
    rather than ``0`` so "not applicable" stays distinguishable from zero.
    """

    total_income: int
    prior_year_carryover: int
    current_year_income: int
    total_expense: int
    next_year_carryover: int

    personal_donations: int
    donation_subtotal: int
    donation_total: int

    regular_expense_total: int
    political_activity_expense_total: int
    political_activity_expenses: PoliticalActivityTotals

    personal_dues_amount: int | None = None
    personal_dues_count: int | None = None
    specific_donations: int | None = None
    corporate_donations: int | None = None
    political_org_donations: int | None = None
    brokered_donations: int | None = None
    anonymous_party_donations: int | None = None

    remarks: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ExpenseSummaryItem:
    amount: int | None
    grant_amount: int | None = None
    bikou: str | None = None


@dataclass(frozen=True, slots=True)
class RegularExpenseSummary:
    personnel: ExpenseSummaryItem
    utility: ExpenseSummaryItem
    supplies: ExpenseSummaryItem
    office: ExpenseSummaryItem
    subtotal: ExpenseSummaryItem


@dataclass(frozen=True, slots=True)
class PoliticalActivityExpenseSummary:
    organization: ExpenseSummaryItem
    election: ExpenseSummaryItem
    # publication + advertising + fundraising party + other business
    business: ExpenseSummaryItem
    publication: ExpenseSummaryItem
    advertising: ExpenseSummaryItem
    fundraising_party: ExpenseSummaryItem
    other_business: ExpenseSummaryItem
    research: ExpenseSummaryItem
    donation_grant: ExpenseSummaryItem
    other_political: ExpenseSummaryItem
    subtotal: ExpenseSummaryItem


@dataclass(frozen=True, slots=True)
class ExpenseSummary:
    """Expense breakdown sheet (SYUUSHI07_13)."""

    regular: RegularExpenseSummary
    political: PoliticalActivityExpenseSummary
    total_amount: int


__all__ = [
    "BranchGrantRow",
    "BusinessIncomeRow",
    "ContactPerson",
    "DietMember",
    "DietMemberRelation",
    "DonationData",
    "ExpenseData",
    "ExpenseRow",
    "ExpenseSummary",
    "ExpenseSummaryItem",
    "FundManagement",
    "GrantIncomeRow",
    "IncomeData",
    "LoanIncomeRow",
    "OtherIncomeRow",
    "Period",
    "PersonName",
    "PersonalDonationRow",
    "PersonnelSection",
    "PoliticalActivityExpenseSummary",
    "PoliticalActivitySheet",
    "PoliticalActivityTotals",
    "Profile",
    "ProfileDetails",
    "RegularExpenseSummary",
    "ReportData",
    "Section",
    "SectionRow",
    "SummaryData",
    "Transaction",
    "TransactionType",
]
