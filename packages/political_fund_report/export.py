"""Report export: choose the forms, render the document, transcode it."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable
from dataclasses import dataclass

from .assembler import AssemblyResult
from .config import ReportConfig
from .document import KNOWN_FORM_IDS, DocumentHead, build_document, encode_document
from .errors import ContractViolation, ReportValidationError
from .logging_setup import get_logger
from .models import ReportData
from .sections import should_output_sheet
from .summary import (
    build_presence_flag,
    compute_expense_summary,
    compute_summary,
    political_activity_sheet_present,
    regular_expense_sheet_present,
    should_output_expense_summary,
)
from .xml_sections import (
    build_branch_grant_section,
    build_business_income_section,
    build_expense_summary_section,
    build_grant_income_section,
    build_loan_income_section,
    build_other_income_section,
    build_personal_donation_section,
    build_political_activity_section,
    build_profile_section,
    build_regular_expense_section,
    build_summary_section,
)

_logger = get_logger(__name__)

FULL_REPORT_CODE = "SYUUSHI07"


@dataclass(frozen=True, slots=True)
class ExportResult:
    text: str
    data: bytes
    filename: str


type _FormBuilder = Callable[[ReportData], ET.Element]


def _summary_form(report: ReportData) -> ET.Element:
    return build_summary_section(compute_summary(report))


def _expense_summary_form(report: ReportData) -> ET.Element:
    return build_expense_summary_section(compute_expense_summary(report.expenses))


# form id -> (should emit in a full report, builder). Dict order is the
# full-report order.
_FORMS: dict[str, tuple[Callable[[ReportData], bool], _FormBuilder]] = {
    "SYUUSHI07_01": (lambda r: True, lambda r: build_profile_section(r.profile)),
    "SYUUSHI07_02": (lambda r: True, _summary_form),
    "SYUUSHI07_07": (
        lambda r: should_output_sheet(r.donations.personal_donations),
        lambda r: build_personal_donation_section(r.donations.personal_donations),
    ),
    "SYUUSHI07_03": (
        lambda r: should_output_sheet(r.income.business_income),
        lambda r: build_business_income_section(r.income.business_income),
    ),
    "SYUUSHI07_04": (
        lambda r: should_output_sheet(r.income.loan_income),
        lambda r: build_loan_income_section(r.income.loan_income),
    ),
    "SYUUSHI07_05": (
        lambda r: should_output_sheet(r.income.grant_income),
        lambda r: build_grant_income_section(r.income.grant_income),
    ),
    "SYUUSHI07_06": (
        lambda r: should_output_sheet(r.income.other_income),
        lambda r: build_other_income_section(r.income.other_income),
    ),
    "SYUUSHI07_14": (
        lambda r: regular_expense_sheet_present(r.expenses),
        lambda r: build_regular_expense_section(r.expenses),
    ),
    "SYUUSHI07_13": (
        lambda r: should_output_expense_summary(compute_expense_summary(r.expenses)),
        _expense_summary_form,
    ),
    "SYUUSHI07_15": (
        lambda r: political_activity_sheet_present(r.expenses),
        lambda r: build_political_activity_section(r.expenses),
    ),
    "SYUUSHI07_16": (
        lambda r: should_output_sheet(r.expenses.branch_grants),
        lambda r: build_branch_grant_section(r.expenses.branch_grants),
    ),
}

SUPPORTED_FORM_IDS: tuple[str, ...] = tuple(_FORMS)


def _filename(code: str, report: ReportData) -> str:
    return f"{code}_{report.organization_id}_{report.financial_year}.xml"


def _finish(
    report: ReportData, sections: list[ET.Element], filename: str, config: ReportConfig
) -> ExportResult:
    head = DocumentHead(presence_flag=build_presence_flag(report))
    text = build_document(head, sections)
    data = encode_document(text, config.encoding_policy)
    _logger.info(
        "export:done file=%s sections=%d bytes=%d",
        filename,
        len(sections),
        len(data),
    )
    return ExportResult(text=text, data=data, filename=filename)


def _check_exportable(assembly: AssemblyResult) -> ReportData:
    if not assembly.is_valid:
        raise ReportValidationError(assembly.validation)
    return assembly.report


def export_xml(assembly: AssemblyResult, *, config: ReportConfig | None = None) -> ExportResult:
    """Serialize the whole report.

    Raises ``ReportValidationError`` when the assembly's validation carries
    errors; warnings do not block. Raises ``EncodingError`` under the strict
    encoding policy when the text has characters outside Shift_JIS.
    """

    report = _check_exportable(assembly)
    cfg = config or ReportConfig()
    sections = [build(report) for should_emit, build in _FORMS.values() if should_emit(report)]
    return _finish(report, sections, _filename(FULL_REPORT_CODE, report), cfg)


def export_single_section_xml(
    form_id: str,
    assembly: AssemblyResult,
    *,
    config: ReportConfig | None = None,
) -> ExportResult:
    """Serialize one form, still wrapped in the header and flag blocks.

    The form is written even when it has no content. ``form_id`` must be a
    form this engine produces; anything else raises ``ContractViolation``.
    Validation errors block this export too.
    """

    if form_id not in _FORMS:
        known = "known but not produced" if form_id in KNOWN_FORM_IDS else "unknown"
        raise ContractViolation(f"cannot export form {form_id!r} ({known})")
    report = _check_exportable(assembly)
    cfg = config or ReportConfig()
    _, build = _FORMS[form_id]
    return _finish(report, [build(report)], _filename(form_id, report), cfg)


__all__ = [
    "ExportResult",
    "FULL_REPORT_CODE",
    "SUPPORTED_FORM_IDS",
    "export_single_section_xml",
    "export_xml",
]
