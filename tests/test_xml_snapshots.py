# ruff: noqa: E501
from __future__ import annotations

import textwrap
import xml.etree.ElementTree as ET
from datetime import date

import pytest

from political_fund_report.document import DocumentHead, build_document, render_element
from political_fund_report.errors import ContractViolation
from political_fund_report.models import (
    ExpenseData,
    ExpenseRow,
    FundManagement,
    OtherIncomeRow,
    Period,
    PersonalDonationRow,
    PersonName,
    PersonnelSection,
    PoliticalActivitySheet,
    PoliticalActivityTotals,
    Section,
    SummaryData,
)
from political_fund_report.summary import compute_expense_summary
from political_fund_report.xml_sections import (
    build_expense_summary_section,
    build_other_income_section,
    build_personal_donation_section,
    build_political_activity_section,
    build_profile_section,
    build_regular_expense_section,
    build_summary_section,
)
from tests.helpers.builders import make_profile


def _dedent(s: str) -> str:
    # Keep internal newlines, but normalize indentation for readability.
    return textwrap.dedent(s).lstrip("\n")


def _other_income_row(**kw) -> OtherIncomeRow:
    base = {"ichiren_no": 1, "tekiyou": "雑収入", "kingaku": 150_000, "bikou": "MF行番号: 0001"}
    base.update(kw)
    return OtherIncomeRow(**base)


# ---- SYUUSHI07_06 ------------------------------------------------------------


def test_other_income_without_folded_amount_writes_empty_miman():
    section = Section(total_amount=150_000, under_threshold_amount=None, rows=(_other_income_row(),))

    assert render_element(build_other_income_section(section)) == _dedent(
        """
        <SYUUSHI07_06>
          <SHEET>
            <KINGAKU_GK>150000</KINGAKU_GK>
            <MIMAN_GK/>
            <ROW>
              <ICHIREN_NO>1</ICHIREN_NO>
              <TEKIYOU>雑収入</TEKIYOU>
              <KINGAKU>150000</KINGAKU>
              <BIKOU>MF行番号: 0001</BIKOU>
            </ROW>
          </SHEET>
        </SYUUSHI07_06>
        """
    )


def test_other_income_with_folded_amount_writes_the_number():
    section = Section(total_amount=70_000, under_threshold_amount=70_000, rows=())

    assert render_element(build_other_income_section(section)) == _dedent(
        """
        <SYUUSHI07_06>
          <SHEET>
            <KINGAKU_GK>70000</KINGAKU_GK>
            <MIMAN_GK>70000</MIMAN_GK>
          </SHEET>
        </SYUUSHI07_06>
        """
    )


def test_text_cells_are_escaped():
    section = Section(
        total_amount=150_000,
        under_threshold_amount=None,
        rows=(_other_income_row(tekiyou='A&B <株> "x"'),),
    )

    assert "<TEKIYOU>A&amp;B &lt;株&gt; &quot;x&quot;</TEKIYOU>" in render_element(
        build_other_income_section(section)
    )


# ---- SYUUSHI07_07 ------------------------------------------------------------


def test_personal_donation_snapshot():
    row = PersonalDonationRow(
        ichiren_no=1,
        kifusya_nm="田中一郎",
        kingaku=50_000,
        dt=date(2025, 3, 1),
        adr="東京都港区",
        syokugyo="医師",
        bikou="MF行番号: 0003",
    )
    section = Section(total_amount=50_000, under_threshold_amount=None, rows=(row,))

    assert render_element(build_personal_donation_section(section)) == _dedent(
        """
        <SYUUSHI07_07>
          <KUBUN1>
            <SHEET>
              <KINGAKU_GK>50000</KINGAKU_GK>
              <SONOTA_GK/>
              <ROW>
                <ICHIREN_NO>1</ICHIREN_NO>
                <KIFUSYA_NM>田中一郎</KIFUSYA_NM>
                <KINGAKU>50000</KINGAKU>
                <DT>R7/3/1</DT>
                <ADR>東京都港区</ADR>
                <SYOKUGYO>医師</SYOKUGYO>
                <BIKOU>MF行番号: 0003</BIKOU>
                <SEQ_NO/>
                <ZEIGAKUKOUJYO>0</ZEIGAKUKOUJYO>
                <ROWKBN>0</ROWKBN>
              </ROW>
            </SHEET>
          </KUBUN1>
        </SYUUSHI07_07>
        """
    )


# ---- SYUUSHI07_14 / 15 -------------------------------------------------------


def _expense_row(**kw) -> ExpenseRow:
    base = {
        "ichiren_no": 1,
        "mokuteki": "会場費",
        "kingaku": 80_000,
        "dt": date(2025, 6, 10),
        "nm": "貸会議室株式会社",
        "adr": "東京都中央区",
        "bikou": "MF行番号: 0009",
    }
    base.update(kw)
    return ExpenseRow(**base)


def test_political_activity_writes_every_kubun_with_blank_sheets():
    sheet = PoliticalActivitySheet(
        total_amount=90_000, under_threshold_amount=10_000, rows=(_expense_row(),), himoku="会議費"
    )
    root = build_political_activity_section(ExpenseData(research=(sheet,)))

    assert [el.tag for el in root] == [f"KUBUN{n}" for n in range(1, 10)]
    assert render_element(root.find("KUBUN1")) == _dedent(
        """
        <KUBUN1>
          <SHEET>
            <HIMOKU/>
            <KINGAKU_GK>0</KINGAKU_GK>
            <SONOTA_GK/>
          </SHEET>
        </KUBUN1>
        """
    )
    assert render_element(root.find("KUBUN7")) == _dedent(
        """
        <KUBUN7>
          <SHEET>
            <HIMOKU>会議費</HIMOKU>
            <KINGAKU_GK>90000</KINGAKU_GK>
            <SONOTA_GK>10000</SONOTA_GK>
            <ROW>
              <ICHIREN_NO>1</ICHIREN_NO>
              <MOKUTEKI>会場費</MOKUTEKI>
              <KINGAKU>80000</KINGAKU>
              <DT>R7/6/10</DT>
              <NM>貸会議室株式会社</NM>
              <ADR>東京都中央区</ADR>
              <BIKOU>MF行番号: 0009</BIKOU>
            </ROW>
          </SHEET>
        </KUBUN7>
        """
    )


def test_political_activity_writes_one_sheet_per_cost_item():
    sheets = tuple(
        PoliticalActivitySheet(total_amount=1, under_threshold_amount=1, rows=(), himoku=h)
        for h in ("会議費", "旅費")
    )
    root = build_political_activity_section(ExpenseData(organization=sheets))

    assert [s.findtext("HIMOKU") for s in root.find("KUBUN1")] == ["会議費", "旅費"]


def test_regular_expense_always_has_three_kubun_and_optional_receipt_flag():
    expenses = ExpenseData(office=Section(total_amount=80_000, under_threshold_amount=None, rows=(_expense_row(ryousyu=1),)))
    root = build_regular_expense_section(expenses)

    assert [el.tag for el in root] == ["KUBUN1", "KUBUN2", "KUBUN3"]
    assert root.findtext("KUBUN1/SHEET/KINGAKU_GK") == "0"
    assert root.find("KUBUN3/SHEET/ROW/RYOUSYU").text == "1"

    no_flag = build_regular_expense_section(
        ExpenseData(office=Section(total_amount=80_000, under_threshold_amount=None, rows=(_expense_row(),)))
    )
    assert no_flag.find("KUBUN3/SHEET/ROW/RYOUSYU") is None


# ---- SYUUSHI07_13 ------------------------------------------------------------


def test_expense_summary_blank_regular_items_and_numeric_political_items():
    expenses = ExpenseData(
        personnel=PersonnelSection(300_000),
        organization=(PoliticalActivitySheet(total_amount=5_000, under_threshold_amount=5_000, rows=()),),
    )
    root = build_expense_summary_section(compute_expense_summary(expenses))
    sheet = root.find("SHEET")

    assert sheet.findtext("JINKENHI_GK") == "300000"
    assert sheet.find("KOUNETU_GK").text is None
    assert sheet.findtext("KEIHI_SKEI_GK") == "300000"
    assert sheet.findtext("SOSIKI_GK") == "5000"
    assert sheet.findtext("SENKYO_GK") == "0"
    assert sheet.find("SENKYO_KOUFU").text is None
    assert sheet.findtext("KATUDOU_SKEI_GK") == "5000"
    assert sheet[-1].tag == "GKEI_GK"
    assert sheet.findtext("GKEI_GK") == "305000"


# ---- SYUUSHI07_02 ------------------------------------------------------------


def test_summary_prints_unreported_donors_as_zero_with_blank_remarks():
    summary = SummaryData(
        total_income=130_000,
        prior_year_carryover=30_000,
        current_year_income=100_000,
        total_expense=40_000,
        next_year_carryover=90_000,
        personal_donations=100_000,
        donation_subtotal=100_000,
        donation_total=100_000,
        regular_expense_total=40_000,
        political_activity_expense_total=0,
        political_activity_expenses=PoliticalActivityTotals(),
    )
    root = build_summary_section(summary)
    sheet = root.find("SHEET")

    assert [el.tag for el in sheet][:7] == [
        "SYUNYU_SGK",
        "ZENNEN_KKS_GK",
        "HONNEN_SYUNYU_GK",
        "SISYUTU_SGK",
        "YOKUNEN_KKS_GK",
        "KOJIN_FUTAN_KGK",
        "KOJIN_FUTAN_SU",
    ]
    assert sheet.findtext("YOKUNEN_KKS_GK") == "90000"
    assert sheet.findtext("KOJIN_KIFU_GK") == "100000"
    assert sheet.findtext("HOJIN_KIFU_GK") == "0"
    assert sheet.find("HOJIN_KIFU_BIKOU").text is None
    assert sheet[-1].tag == "KIFU_GKEI_BIKOU"


# ---- SYUUSHI07_01 ------------------------------------------------------------


def test_profile_field_order_and_empty_slots():
    root = build_profile_section(make_profile())
    tags = [el.tag for el in root]

    assert tags[:16] == [
        "HOUKOKU_NEN",
        "KAISAI_DT",
        "DANTAI_NM",
        "DANTAI_KANA",
        "JIM_ADR",
        "JIM_APA_ADR",
        "DAI_NM1",
        "DAI_NM2",
        "KAI_NM1",
        "KAI_NM2",
        "TANTOU_NM1",
        "TANTOU_NM2",
        "TANTOU_TEL",
        "TANTOU2_NM1",
        "TANTOU2_NM2",
        "TANTOU2_TEL",
    ]
    assert root.findtext("HOUKOKU_NEN") == "2025"
    assert root.findtext("DAI_NM1") == "山田"
    assert root.find("TANTOU2_NM1").text is None
    assert root.findtext("SIKIN_UMU") == "0"
    assert root.findtext("GIIN_DANTAI_KBN") == "0"
    assert root.find("SIKIN_KIKAN1") is None


def test_profile_with_fund_management_writes_periods():
    fund = FundManagement(
        public_position_name="衆議院議員",
        public_position_type="1",
        applicant=PersonName(last_name="山田", first_name="太郎"),
        periods=(Period(start="R6/1/1", end="R6/12/31"), Period(start="R7/1/1", end="")),
    )
    profile = make_profile()
    details = profile.details.model_copy(update={"fund_management": fund})
    root = build_profile_section(profile.model_copy(update={"details": details}))

    assert root.findtext("SIKIN_UMU") == "1"
    assert root.findtext("KOSYOKU_NM") == "衆議院議員"
    assert root.findtext("SIKIN_KIKAN1") == "R6/1/1"
    assert root.findtext("SIKIN_KIKAN2") == "R6/12/31"
    assert root.findtext("SIKIN_KIKAN21") == "R7/1/1"
    assert root.find("SIKIN_KIKAN22").text is None


# ---- document ----------------------------------------------------------------


def test_document_header_snapshot():
    text = build_document(DocumentHead(presence_flag="11" + "0" * 49), [])

    assert text == _dedent(
        """
        <?xml version="1.0" encoding="Shift_JIS"?>
        <BOOK>
          <HEAD>
            <VERSION>20081001</VERSION>
            <APP>収支報告書作成ソフト (収支報告書作成ソフト)</APP>
            <FILE_FORMAT_NO>1</FILE_FORMAT_NO>
            <KOKUJI_APP_FLG>0</KOKUJI_APP_FLG>
            <CHOUBO_APP_VER>20081001</CHOUBO_APP_VER>
          </HEAD>
          <SYUUSHI_UMU_FLG>
            <SYUUSHI_UMU>110000000000000000000000000000000000000000000000000</SYUUSHI_UMU>
          </SYUUSHI_UMU_FLG>
        </BOOK>
        """
    )


def test_document_filters_by_available_form_ids():
    profile_el = build_profile_section(make_profile())
    other_el = build_other_income_section(Section.empty())
    text = build_document(
        DocumentHead(presence_flag="1" * 51),
        [profile_el, other_el],
        available_form_ids=["SYUUSHI07_01"],
    )

    assert "<SYUUSHI07_01>" in text
    assert "SYUUSHI07_06" not in text


def test_document_rejects_unknown_form_ids():
    with pytest.raises(ContractViolation):
        build_document(DocumentHead(presence_flag="0" * 51), [ET.Element("SYUUSHI99")])
    with pytest.raises(ContractViolation):
        build_document(DocumentHead(presence_flag="0" * 51), [], available_form_ids=["BOGUS"])
