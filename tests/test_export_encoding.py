from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

import pytest

from political_fund_report.assembler import assemble_report
from political_fund_report.categories import CATEGORIES
from political_fund_report.config import ReportConfig
from political_fund_report.document import XML_DECLARATION, encode_document, find_unencodable
from political_fund_report.errors import ContractViolation, EncodingError, ReportValidationError
from political_fund_report.export import SUPPORTED_FORM_IDS, export_single_section_xml, export_xml
from tests.helpers.builders import make_profile, make_tx

# U+20BB7, a common name variant with no Shift_JIS mapping
_UNMAPPED = "\U00020bb7"


def _body(text: str) -> ET.Element:
    # ElementTree cannot decode Shift_JIS; parse the already-decoded text.
    declaration, body = text.split("\n", 1)
    assert declaration == XML_DECLARATION
    return ET.fromstring(body)


def _form_tags(text: str) -> list[str]:
    return [el.tag for el in _body(text) if el.tag.startswith("SYUUSHI07")]


# ---- full export -------------------------------------------------------------


def test_empty_report_exports_profile_and_summary_only():
    result = export_xml(assemble_report(make_profile(), {}, prior_year_carryover=5_000))
    book = _body(result.text)

    assert result.filename == "SYUUSHI07_org-1_2025.xml"
    assert _form_tags(result.text) == ["SYUUSHI07_01", "SYUUSHI07_02"]
    assert book.findtext("SYUUSHI_UMU_FLG/SYUUSHI_UMU") == "11" + "0" * 49
    assert book.findtext("SYUUSHI07_02/SHEET/ZENNEN_KKS_GK") == "5000"
    assert book.findtext("SYUUSHI07_02/SHEET/YOKUNEN_KKS_GK") == "5000"


def test_full_report_emits_forms_in_filing_order():
    txs = {info.key: [make_tx(info.key, 500_000)] for info in CATEGORIES}
    assembled = assemble_report(make_profile(), txs)
    result = export_xml(assembled)

    assert _form_tags(result.text) == list(SUPPORTED_FORM_IDS)
    assert SUPPORTED_FORM_IDS == (
        "SYUUSHI07_01",
        "SYUUSHI07_02",
        "SYUUSHI07_07",
        "SYUUSHI07_03",
        "SYUUSHI07_04",
        "SYUUSHI07_05",
        "SYUUSHI07_06",
        "SYUUSHI07_14",
        "SYUUSHI07_13",
        "SYUUSHI07_15",
        "SYUUSHI07_16",
    )


def test_exported_bytes_are_shift_jis():
    profile = make_profile(official_name="①テスト政治団体")
    result = export_xml(assemble_report(profile, {}))

    assert result.data.startswith(XML_DECLARATION.encode("ascii"))
    assert result.data.decode("cp932") == result.text
    assert "<DANTAI_NM>①テスト政治団体</DANTAI_NM>" in result.text


def test_personnel_only_report_emits_expense_breakdown_without_detail_forms():
    assembled = assemble_report(
        make_profile(), {"personnel-costs": [make_tx("personnel-costs", 250_000)]}
    )
    result = export_xml(assembled)

    assert _form_tags(result.text) == ["SYUUSHI07_01", "SYUUSHI07_02", "SYUUSHI07_13"]


# ---- validation gate ---------------------------------------------------------


def test_export_is_blocked_by_validation_errors():
    assembled = assemble_report(make_profile(official_name=None), {})

    with pytest.raises(ReportValidationError) as excinfo:
        export_xml(assembled)
    assert excinfo.value.result is assembled.validation


def test_warnings_do_not_block_export():
    assembled = assemble_report(
        make_profile(), {"office-expenses": [make_tx("office-expenses", 150_000)]}
    )

    assert assembled.validation.warnings
    result = export_xml(assembled)
    assert result.data


def test_single_section_export_is_blocked_by_validation_errors():
    assembled = assemble_report(make_profile(official_name=None), {})

    with pytest.raises(ReportValidationError):
        export_single_section_xml("SYUUSHI07_06", assembled)


def test_exported_carryover_is_the_one_that_was_validated():
    assembled = assemble_report(
        make_profile(),
        {"office-expenses": [make_tx("office-expenses", 150_000)]},
        prior_year_carryover=3_000,
    )
    (warning,) = assembled.validation.warnings
    sheet = _body(export_xml(assembled).text).find("SYUUSHI07_02/SHEET")

    assert "-147000" in warning.message
    assert sheet.findtext("ZENNEN_KKS_GK") == "3000"
    assert sheet.findtext("YOKUNEN_KKS_GK") == "-147000"


# ---- encoding policy ---------------------------------------------------------


def test_strict_policy_rejects_unmapped_characters():
    assembled = assemble_report(make_profile(official_name=f"{_UNMAPPED}野家後援会"), {})

    with pytest.raises(EncodingError) as excinfo:
        export_xml(assembled)
    (problem,) = excinfo.value.problems
    assert problem.codepoint == "U+20BB7"
    assert excinfo.value.encoding == "Shift_JIS"
    assert "U+20BB7" in str(excinfo.value)


def test_replace_policy_substitutes_and_warns(caplog: pytest.LogCaptureFixture, monkeypatch):
    monkeypatch.setattr(logging.getLogger("political_fund_report"), "propagate", True)
    caplog.set_level(logging.WARNING, logger="political_fund_report")
    assembled = assemble_report(make_profile(official_name=f"{_UNMAPPED}野家後援会"), {})

    result = export_xml(assembled, config=ReportConfig(encoding_policy="replace"))

    assert "<DANTAI_NM>?野家後援会</DANTAI_NM>" in result.data.decode("cp932")
    assert "encode_document:replaced count=1 first=U+20BB7" in caplog.text


def test_find_unencodable_reports_line_and_column():
    problems = find_unencodable(f"abc\nあ{_UNMAPPED}い\n☃")

    assert [(p.line, p.column, p.codepoint) for p in problems] == [
        (2, 2, "U+20BB7"),
        (3, 1, "U+2603"),
    ]


def test_encode_document_rejects_unknown_policy():
    with pytest.raises(ValueError):
        encode_document("x", "ignore")  # type: ignore[arg-type]


# ---- single form -------------------------------------------------------------


def test_single_section_is_written_even_when_empty():
    result = export_single_section_xml("SYUUSHI07_06", assemble_report(make_profile(), {}))
    book = _body(result.text)

    assert result.filename == "SYUUSHI07_06_org-1_2025.xml"
    assert _form_tags(result.text) == ["SYUUSHI07_06"]
    assert book.findtext("SYUUSHI07_06/SHEET/KINGAKU_GK") == "0"
    assert book.find("SYUUSHI07_06/SHEET/MIMAN_GK").text is None
    assert book.findtext("SYUUSHI_UMU_FLG/SYUUSHI_UMU") == "11" + "0" * 49


def test_single_summary_section_uses_carryover():
    result = export_single_section_xml(
        "SYUUSHI07_02", assemble_report(make_profile(), {}, prior_year_carryover=42)
    )

    assert _body(result.text).findtext("SYUUSHI07_02/SHEET/SYUNYU_SGK") == "42"


@pytest.mark.parametrize(("form_id", "reason"), [("SYUUSHI07_08", "known but not produced"), ("NOPE", "unknown")])
def test_single_section_rejects_forms_not_produced(form_id, reason):
    with pytest.raises(ContractViolation, match=reason):
        export_single_section_xml(form_id, assemble_report(make_profile(), {}))
