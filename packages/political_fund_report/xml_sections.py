"""Per-form XML fragments.

Each ``build_*`` function returns an :class:`xml.etree.ElementTree.Element`
rooted at the form's code (``SYUUSHI07_xx``). Element order inside a form is
fixed by the receiving system and must not change. Optional values are
written as empty elements, never omitted; :mod:`.document` renders an
element without text as ``<TAG/>``.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Sequence

from .categories import POLITICAL_ACTIVITY_FAMILIES, REGULAR_EXPENSE_FAMILIES
from .models import (
    BranchGrantRow,
    BusinessIncomeRow,
    ExpenseData,
    ExpenseRow,
    ExpenseSummary,
    ExpenseSummaryItem,
    GrantIncomeRow,
    LoanIncomeRow,
    OtherIncomeRow,
    Period,
    PersonalDonationRow,
    PoliticalActivitySheet,
    Profile,
    Section,
    SummaryData,
)
from .normalizers import format_amount, format_wareki_date

# ---------------------------------------------------------------------------
# Element helpers
# ---------------------------------------------------------------------------


def _leaf(parent: ET.Element, tag: str, text: str | None = None) -> ET.Element:
    el = ET.SubElement(parent, tag)
    if text:
        el.text = text
    return el


def _amount(parent: ET.Element, tag: str, value: int | None) -> ET.Element:
    # None stays an empty element; 0 is written as "0".
    return _leaf(parent, tag, None if value is None else format_amount(value))


def _slot_suffix(index: int) -> str:
    return "" if index == 0 else str(index + 1)


# ---------------------------------------------------------------------------
# SYUUSHI07_01 (organization profile)
# ---------------------------------------------------------------------------

_PRINTED_SLOTS = 3


def _periods(root: ET.Element, prefix: str, periods: Sequence[Period]) -> None:
    for i, period in enumerate(periods[:_PRINTED_SLOTS]):
        suffix = _slot_suffix(i)
        _leaf(root, f"{prefix}{suffix}1", period.start)
        _leaf(root, f"{prefix}{suffix}2", period.end)


def build_profile_section(profile: Profile) -> ET.Element:
    root = ET.Element("SYUUSHI07_01")
    details = profile.details

    year = profile.financial_year
    _leaf(root, "HOUKOKU_NEN", str(year) if year is not None else None)
    _leaf(root, "KAISAI_DT", details.specific_party_date)
    _leaf(root, "DANTAI_NM", profile.official_name)
    _leaf(root, "DANTAI_KANA", profile.official_name_kana)
    _leaf(root, "JIM_ADR", profile.office_address)
    _leaf(root, "JIM_APA_ADR", profile.office_address_building)

    rep = details.representative
    _leaf(root, "DAI_NM1", rep.last_name if rep else None)
    _leaf(root, "DAI_NM2", rep.first_name if rep else None)
    acc = details.accountant
    _leaf(root, "KAI_NM1", acc.last_name if acc else None)
    _leaf(root, "KAI_NM2", acc.first_name if acc else None)

    for i in range(_PRINTED_SLOTS):
        person = details.contact_persons[i] if i < len(details.contact_persons) else None
        suffix = _slot_suffix(i)
        _leaf(root, f"TANTOU{suffix}_NM1", person.last_name if person else None)
        _leaf(root, f"TANTOU{suffix}_NM2", person.first_name if person else None)
        _leaf(root, f"TANTOU{suffix}_TEL", person.tel if person else None)

    _leaf(root, "DANTAI_KBN", details.organization_type)
    _leaf(root, "KATU_KUKI", details.activity_area)

    fund = details.fund_management
    _leaf(root, "SIKIN_UMU", "1" if fund is not None else "0")
    if fund is not None:
        _leaf(root, "KOSYOKU_NM", fund.public_position_name)
        _leaf(root, "KOSYOKU_KBN", fund.public_position_type)
        _leaf(root, "SIKIN_TODOKE_NM1", fund.applicant.last_name if fund.applicant else None)
        _leaf(root, "SIKIN_TODOKE_NM2", fund.applicant.first_name if fund.applicant else None)
        _periods(root, "SIKIN_KIKAN", fund.periods)
    else:
        for tag in ("KOSYOKU_NM", "KOSYOKU_KBN", "SIKIN_TODOKE_NM1", "SIKIN_TODOKE_NM2"):
            _leaf(root, tag)

    relation = details.diet_member_relation
    kind = relation.type if relation is not None else "0"
    _leaf(root, "GIIN_DANTAI_KBN", kind)
    members = relation.members if relation is not None and kind != "0" else ()
    for i in range(_PRINTED_SLOTS):
        member = members[i] if i < len(members) else None
        suffix = _slot_suffix(i)
        _leaf(root, f"GIIN{suffix}_KOSYOKU_NM_1", member.last_name if member else None)
        _leaf(root, f"GIIN{suffix}_KOSYOKU_NM_2", member.first_name if member else None)
        _leaf(root, f"GIIN{suffix}_KOSYOKU_NM", member.chamber if member else None)
        _leaf(root, f"GIIN{suffix}_KOSYOKU_KBN", member.position_type if member else None)
    if relation is not None and kind != "0":
        _periods(root, "GIIN_KIKAN", relation.periods)

    return root


# ---------------------------------------------------------------------------
# SYUUSHI07_02 (totals)
# ---------------------------------------------------------------------------

# (tag stem, SummaryData field) in sheet order
_DONATION_LINES: tuple[tuple[str, str], ...] = (
    ("KOJIN_KIFU", "personal_donations"),
    ("TOKUTEI_KIFU", "specific_donations"),
    ("HOJIN_KIFU", "corporate_donations"),
    ("SEIJI_KIFU", "political_org_donations"),
    ("KIFU_SKEI", "donation_subtotal"),
    ("ATUSEN", "brokered_donations"),
    ("TOKUMEI_KIFU", "anonymous_party_donations"),
    ("KIFU_GKEI", "donation_total"),
)


def build_summary_section(summary: SummaryData) -> ET.Element:
    root = ET.Element("SYUUSHI07_02")
    sheet = ET.SubElement(root, "SHEET")
    _leaf(sheet, "SYUNYU_SGK", format_amount(summary.total_income))
    _leaf(sheet, "ZENNEN_KKS_GK", format_amount(summary.prior_year_carryover))
    _leaf(sheet, "HONNEN_SYUNYU_GK", format_amount(summary.current_year_income))
    _leaf(sheet, "SISYUTU_SGK", format_amount(summary.total_expense))
    _leaf(sheet, "YOKUNEN_KKS_GK", format_amount(summary.next_year_carryover))
    # Not-applicable amounts are printed as 0 on this sheet.
    _leaf(sheet, "KOJIN_FUTAN_KGK", format_amount(summary.personal_dues_amount))
    _leaf(sheet, "KOJIN_FUTAN_SU", format_amount(summary.personal_dues_count))
    for stem, attr in _DONATION_LINES:
        _leaf(sheet, f"{stem}_GK", format_amount(getattr(summary, attr)))
        _leaf(sheet, f"{stem}_BIKOU", summary.remarks.get(stem))
    return root


# ---------------------------------------------------------------------------
# SYUUSHI07_03..06 (income)
# ---------------------------------------------------------------------------


def _income_sheet(form_id: str, section: Section) -> tuple[ET.Element, ET.Element]:
    root = ET.Element(form_id)
    sheet = ET.SubElement(root, "SHEET")
    _amount(sheet, "KINGAKU_GK", section.total_amount)
    return root, sheet


def build_business_income_section(section: Section[BusinessIncomeRow]) -> ET.Element:
    root, sheet = _income_sheet("SYUUSHI07_03", section)
    for row in section.rows:
        r = ET.SubElement(sheet, "ROW")
        _leaf(r, "ICHIREN_NO", str(row.ichiren_no))
        _leaf(r, "GIGYOU_SYURUI", row.gigyou_syurui)
        _amount(r, "KINGAKU", row.kingaku)
        _leaf(r, "BIKOU", row.bikou)
    return root


def build_loan_income_section(section: Section[LoanIncomeRow]) -> ET.Element:
    root, sheet = _income_sheet("SYUUSHI07_04", section)
    for row in section.rows:
        r = ET.SubElement(sheet, "ROW")
        _leaf(r, "ICHIREN_NO", str(row.ichiren_no))
        _leaf(r, "KARIIRESAKI", row.kariiresaki)
        _amount(r, "KINGAKU", row.kingaku)
        _leaf(r, "BIKOU", row.bikou)
    return root


def build_grant_income_section(section: Section[GrantIncomeRow]) -> ET.Element:
    root, sheet = _income_sheet("SYUUSHI07_05", section)
    for row in section.rows:
        r = ET.SubElement(sheet, "ROW")
        _leaf(r, "ICHIREN_NO", str(row.ichiren_no))
        _leaf(r, "HONSIBU_NM", row.honsibu_nm)
        _amount(r, "KINGAKU", row.kingaku)
        _leaf(r, "DT", format_wareki_date(row.dt))
        _leaf(r, "JIMU_ADR", row.jimu_adr)
        _leaf(r, "BIKOU", row.bikou)
    return root


def build_other_income_section(section: Section[OtherIncomeRow]) -> ET.Element:
    root, sheet = _income_sheet("SYUUSHI07_06", section)
    _amount(sheet, "MIMAN_GK", section.under_threshold_amount)
    for row in section.rows:
        r = ET.SubElement(sheet, "ROW")
        _leaf(r, "ICHIREN_NO", str(row.ichiren_no))
        _leaf(r, "TEKIYOU", row.tekiyou)
        _amount(r, "KINGAKU", row.kingaku)
        _leaf(r, "BIKOU", row.bikou)
    return root


# ---------------------------------------------------------------------------
# SYUUSHI07_07 (personal donations)
# ---------------------------------------------------------------------------


def build_personal_donation_section(section: Section[PersonalDonationRow]) -> ET.Element:
    root = ET.Element("SYUUSHI07_07")
    sheet = ET.SubElement(ET.SubElement(root, "KUBUN1"), "SHEET")
    _amount(sheet, "KINGAKU_GK", section.total_amount)
    _amount(sheet, "SONOTA_GK", section.under_threshold_amount)
    for row in section.rows:
        r = ET.SubElement(sheet, "ROW")
        _leaf(r, "ICHIREN_NO", str(row.ichiren_no))
        _leaf(r, "KIFUSYA_NM", row.kifusya_nm)
        _amount(r, "KINGAKU", row.kingaku)
        _leaf(r, "DT", format_wareki_date(row.dt))
        _leaf(r, "ADR", row.adr)
        _leaf(r, "SYOKUGYO", row.syokugyo)
        _leaf(r, "BIKOU", row.bikou)
        _leaf(r, "SEQ_NO", row.seq_no)
        _leaf(r, "ZEIGAKUKOUJYO", row.zeigakukoujyo)
        _leaf(r, "ROWKBN", row.rowkbn)
    return root


# ---------------------------------------------------------------------------
# SYUUSHI07_13 (expense breakdown)
# ---------------------------------------------------------------------------


def _summary_item(sheet: ET.Element, stem: str, item: ExpenseSummaryItem, *, blank_none: bool) -> None:
    amount = item.amount if blank_none or item.amount is not None else 0
    _amount(sheet, f"{stem}_GK", amount)
    _amount(sheet, f"{stem}_KOUFU", item.grant_amount)
    _leaf(sheet, f"{stem}_BIKOU", item.bikou)


def build_expense_summary_section(summary: ExpenseSummary) -> ET.Element:
    root = ET.Element("SYUUSHI07_13")
    sheet = ET.SubElement(root, "SHEET")
    reg = summary.regular
    for stem, item in (
        ("JINKENHI", reg.personnel),
        ("KOUNETU", reg.utility),
        ("BIHIN", reg.supplies),
        ("JIMUSYO", reg.office),
        ("KEIHI_SKEI", reg.subtotal),
    ):
        _summary_item(sheet, stem, item, blank_none=True)
    pol = summary.political
    for stem, item in (
        ("SOSIKI", pol.organization),
        ("SENKYO", pol.election),
        ("SONOTA_JIGYO", pol.business),
        ("HAKKOU_JIGYO", pol.publication),
        ("SENDEN", pol.advertising),
        ("KAISAI", pol.fundraising_party),
        ("SONOTA", pol.other_business),
        ("CYOUSA", pol.research),
        ("KIFU", pol.donation_grant),
        ("SONOTA_KEIHI", pol.other_political),
        ("KATUDOU_SKEI", pol.subtotal),
    ):
        _summary_item(sheet, stem, item, blank_none=False)
    _amount(sheet, "GKEI_GK", summary.total_amount)
    return root


# ---------------------------------------------------------------------------
# SYUUSHI07_14 / SYUUSHI07_15 (itemized expenses)
# ---------------------------------------------------------------------------


def _expense_rows(sheet: ET.Element, rows: Sequence[ExpenseRow]) -> None:
    for row in rows:
        r = ET.SubElement(sheet, "ROW")
        _leaf(r, "ICHIREN_NO", str(row.ichiren_no))
        _leaf(r, "MOKUTEKI", row.mokuteki)
        _amount(r, "KINGAKU", row.kingaku)
        _leaf(r, "DT", format_wareki_date(row.dt))
        _leaf(r, "NM", row.nm)
        _leaf(r, "ADR", row.adr)
        _leaf(r, "BIKOU", row.bikou)
        if row.ryousyu is not None:
            _leaf(r, "RYOUSYU", str(row.ryousyu))


def build_regular_expense_section(expenses: ExpenseData) -> ET.Element:
    root = ET.Element("SYUUSHI07_14")
    for n, family in enumerate(REGULAR_EXPENSE_FAMILIES, start=1):
        section = expenses.regular(family)
        sheet = ET.SubElement(ET.SubElement(root, f"KUBUN{n}"), "SHEET")
        _amount(sheet, "KINGAKU_GK", section.total_amount)
        _amount(sheet, "SONOTA_GK", section.under_threshold_amount)
        _expense_rows(sheet, section.rows)
    return root


_BLANK_SHEET = PoliticalActivitySheet(total_amount=0, under_threshold_amount=None, rows=(), himoku="")


def build_political_activity_section(expenses: ExpenseData) -> ET.Element:
    root = ET.Element("SYUUSHI07_15")
    for n, family in enumerate(POLITICAL_ACTIVITY_FAMILIES, start=1):
        kubun = ET.SubElement(root, f"KUBUN{n}")
        for sheet_data in expenses.political(family) or (_BLANK_SHEET,):
            sheet = ET.SubElement(kubun, "SHEET")
            _leaf(sheet, "HIMOKU", sheet_data.himoku)
            _amount(sheet, "KINGAKU_GK", sheet_data.total_amount)
            _amount(sheet, "SONOTA_GK", sheet_data.under_threshold_amount)
            _expense_rows(sheet, sheet_data.rows)
    return root


# ---------------------------------------------------------------------------
# SYUUSHI07_16 (grants paid to headquarters / branches)
# ---------------------------------------------------------------------------


def build_branch_grant_section(section: Section[BranchGrantRow]) -> ET.Element:
    root = ET.Element("SYUUSHI07_16")
    sheet = ET.SubElement(root, "SHEET")
    _amount(sheet, "KINGAKU_GK", section.total_amount)
    for row in section.rows:
        r = ET.SubElement(sheet, "ROW")
        _leaf(r, "ICHIREN_NO", str(row.ichiren_no))
        _leaf(r, "SHISYUTU_KMK", row.shisyutu_kmk)
        _amount(r, "KINGAKU", row.kingaku)
        _leaf(r, "DT", format_wareki_date(row.dt))
        _leaf(r, "HONSIBU_NM", row.honsibu_nm)
        _leaf(r, "JIMU_ADR", row.jimu_adr)
        _leaf(r, "BIKOU", row.bikou)
    return root


__all__ = [
    "build_branch_grant_section",
    "build_business_income_section",
    "build_expense_summary_section",
    "build_grant_income_section",
    "build_loan_income_section",
    "build_other_income_section",
    "build_personal_donation_section",
    "build_political_activity_section",
    "build_profile_section",
    "build_regular_expense_section",
    "build_summary_section",
]
