"""Structural validation of an assembled report.

Problems are returned as data (:class:`ValidationResult`), never raised.
``error`` issues block :func:`~.export.export_xml`; ``warning`` issues are
shown alongside the export but do not block it.

Paths use the attribute names of :class:`~.models.ReportData`, e.g.
``income.other_income.rows[0].tekiyou`` or ``profile.official_name``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from .categories import FAMILY_LABELS, POLITICAL_ACTIVITY_FAMILIES, REGULAR_EXPENSE_FAMILIES, Family
from .models import Profile, ReportData, Section, SectionRow
from .summary import compute_summary

type Severity = Literal["error", "warning"]


class ValidationCode(StrEnum):
    REQUIRED = "REQUIRED"
    MAX_LENGTH_EXCEEDED = "MAX_LENGTH_EXCEEDED"
    NEGATIVE_VALUE = "NEGATIVE_VALUE"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_VALUE = "INVALID_VALUE"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    path: str
    code: ValidationCode
    message: str
    severity: Severity = "error"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def errors(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.severity == "error")

    @property
    def warnings(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.severity == "warning")

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def messages(self) -> list[str]:
        """Human-readable lines, errors first."""

        return [f"[{i.severity}] {i.message}" for i in (*self.errors, *self.warnings)]

    @classmethod
    def merge(cls, results: Iterable[ValidationResult]) -> ValidationResult:
        return cls(issues=tuple(i for r in results for i in r.issues))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _text(
    issues: list[ValidationIssue],
    path: str,
    value: str | None,
    label: str,
    max_len: int,
) -> None:
    if not value:
        issues.append(ValidationIssue(path, ValidationCode.REQUIRED, f"{label}が入力されていません"))
        return
    if len(value) > max_len:
        issues.append(
            ValidationIssue(
                path,
                ValidationCode.MAX_LENGTH_EXCEEDED,
                f"{label}は{max_len}文字以内で入力してください",
            )
        )


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

_MAX_PRINTED_CONTACTS = 3
_MAX_PRINTED_PERIODS = 3


def validate_profile(profile: Profile) -> ValidationResult:
    issues: list[ValidationIssue] = []

    year = profile.financial_year
    if year is None:
        issues.append(
            ValidationIssue("profile.financial_year", ValidationCode.REQUIRED, "報告年が入力されていません")
        )
    elif not 1000 <= year <= 9999:
        issues.append(
            ValidationIssue(
                "profile.financial_year",
                ValidationCode.INVALID_FORMAT,
                "報告年は4桁の西暦で入力してください",
            )
        )

    _text(issues, "profile.official_name", profile.official_name, "政治団体の名称", 120)
    _text(issues, "profile.official_name_kana", profile.official_name_kana, "政治団体の名称（ふりがな）", 120)
    _text(issues, "profile.office_address", profile.office_address, "主たる事務所の所在地", 80)

    details = profile.details
    for attr, label in (("representative", "代表者"), ("accountant", "会計責任者")):
        person = getattr(details, attr)
        base = f"profile.details.{attr}"
        if person is None:
            issues.append(ValidationIssue(base, ValidationCode.REQUIRED, f"{label}が入力されていません"))
            continue
        _text(issues, f"{base}.last_name", person.last_name, f"{label}の姓", 30)
        _text(issues, f"{base}.first_name", person.first_name, f"{label}の名", 30)

    if details.activity_area not in ("1", "2"):
        issues.append(
            ValidationIssue(
                "profile.details.activity_area",
                ValidationCode.REQUIRED if not details.activity_area else ValidationCode.INVALID_VALUE,
                "活動区域は1（2以上の都道府県）または2（1の都道府県）で指定してください",
            )
        )

    if len(details.contact_persons) > _MAX_PRINTED_CONTACTS:
        issues.append(
            ValidationIssue(
                "profile.details.contact_persons",
                ValidationCode.INVALID_VALUE,
                f"事務担当者は{_MAX_PRINTED_CONTACTS}名まで出力されます（4名目以降は出力されません）",
                "warning",
            )
        )

    fund = details.fund_management
    if fund is not None and len(fund.periods) > _MAX_PRINTED_PERIODS:
        issues.append(
            ValidationIssue(
                "profile.details.fund_management.periods",
                ValidationCode.INVALID_VALUE,
                f"資金管理団体の指定期間は{_MAX_PRINTED_PERIODS}件まで出力されます",
                "warning",
            )
        )

    relation = details.diet_member_relation
    if relation is not None:
        if relation.type not in ("0", "1", "2", "3"):
            issues.append(
                ValidationIssue(
                    "profile.details.diet_member_relation.type",
                    ValidationCode.INVALID_VALUE,
                    "国会議員関係政治団体の区分が不正です",
                )
            )
        if len(relation.periods) > _MAX_PRINTED_PERIODS:
            issues.append(
                ValidationIssue(
                    "profile.details.diet_member_relation.periods",
                    ValidationCode.INVALID_VALUE,
                    f"国会議員関係政治団体の期間は{_MAX_PRINTED_PERIODS}件まで出力されます",
                    "warning",
                )
            )

    return ValidationResult(tuple(issues))


# ---------------------------------------------------------------------------
# Section rows
# ---------------------------------------------------------------------------

# family -> ((field, label, max_len), ...), date required
_ROW_RULES: dict[Family, tuple[tuple[tuple[str, str, int], ...], bool]] = {
    Family.BUSINESS_INCOME: ((("gigyou_syurui", "事業の種類", 200),), False),
    Family.LOAN_INCOME: ((("kariiresaki", "借入先", 200),), False),
    Family.GRANT_INCOME: ((("honsibu_nm", "本支部名称", 120), ("jimu_adr", "事務所の所在地", 80)), True),
    Family.OTHER_INCOME: ((("tekiyou", "摘要", 200),), False),
    Family.PERSONAL_DONATIONS: (
        (("kifusya_nm", "寄附者の氏名", 120), ("adr", "住所", 120), ("syokugyo", "職業", 50)),
        True,
    ),
    Family.BRANCH_GRANTS: ((("shisyutu_kmk", "支出の項目", 100), ("honsibu_nm", "本支部名称", 120)), True),
}
_EXPENSE_ROW_RULE: tuple[tuple[tuple[str, str, int], ...], bool] = (
    (("mokuteki", "目的", 200), ("nm", "氏名", 120), ("adr", "住所", 120)),
    True,
)


def validate_rows(
    rows: Sequence[SectionRow], family: Family, base_path: str, section_name: str | None = None
) -> ValidationResult:
    """Check required columns, lengths, dates and amounts of each row."""

    fields, date_required = _ROW_RULES.get(family, _EXPENSE_ROW_RULE)
    name = section_name or FAMILY_LABELS[family]
    issues: list[ValidationIssue] = []
    for index, row in enumerate(rows):
        path = f"{base_path}.rows[{index}]"
        prefix = f"{name}の{index + 1}行目: "
        for attr, label, max_len in fields:
            value = getattr(row, attr)
            if not value:
                issues.append(
                    ValidationIssue(f"{path}.{attr}", ValidationCode.REQUIRED, f"{prefix}{label}が入力されていません")
                )
            elif len(value) > max_len:
                issues.append(
                    ValidationIssue(
                        f"{path}.{attr}",
                        ValidationCode.MAX_LENGTH_EXCEEDED,
                        f"{prefix}{label}は{max_len}文字以内で入力してください",
                    )
                )
        if row.kingaku <= 0:
            issues.append(
                ValidationIssue(
                    f"{path}.kingaku",
                    ValidationCode.NEGATIVE_VALUE,
                    f"{prefix}金額は正の整数で入力してください",
                )
            )
        if date_required and getattr(row, "dt", None) is None:
            issues.append(
                ValidationIssue(f"{path}.dt", ValidationCode.REQUIRED, f"{prefix}年月日が入力されていません")
            )
    return ValidationResult(tuple(issues))


def _validate_section(section: Section, family: Family, base_path: str) -> ValidationResult:
    return validate_rows(section.rows, family, base_path)


# ---------------------------------------------------------------------------
# Whole report
# ---------------------------------------------------------------------------


def validate_report(report: ReportData) -> ValidationResult:
    """Run profile, per-section and report-level checks."""

    results = [
        validate_profile(report.profile),
        _validate_section(
            report.donations.personal_donations,
            Family.PERSONAL_DONATIONS,
            "donations.personal_donations",
        ),
        _validate_section(report.income.business_income, Family.BUSINESS_INCOME, "income.business_income"),
        _validate_section(report.income.loan_income, Family.LOAN_INCOME, "income.loan_income"),
        _validate_section(report.income.grant_income, Family.GRANT_INCOME, "income.grant_income"),
        _validate_section(report.income.other_income, Family.OTHER_INCOME, "income.other_income"),
    ]
    expenses = report.expenses
    for family in REGULAR_EXPENSE_FAMILIES:
        results.append(_validate_section(expenses.regular(family), family, f"expenses.{family.value}"))
    for family in POLITICAL_ACTIVITY_FAMILIES:
        for i, sheet in enumerate(expenses.political(family)):
            results.append(_validate_section(sheet, family, f"expenses.{family.value}[{i}]"))
    results.append(_validate_section(expenses.branch_grants, Family.BRANCH_GRANTS, "expenses.branch_grants"))

    summary = compute_summary(report)
    if summary.next_year_carryover < 0:
        results.append(
            ValidationResult(
                (
                    ValidationIssue(
                        "summary.next_year_carryover",
                        ValidationCode.NEGATIVE_VALUE,
                        f"翌年への繰越額がマイナスです（{summary.next_year_carryover}円）",
                        "warning",
                    ),
                )
            )
        )

    return ValidationResult.merge(results)


__all__ = [
    "Severity",
    "ValidationCode",
    "ValidationIssue",
    "ValidationResult",
    "validate_profile",
    "validate_report",
    "validate_rows",
]
