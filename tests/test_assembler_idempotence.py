from __future__ import annotations

import threading
import time
from collections import Counter
from datetime import date

import pytest

from political_fund_report.assembler import assemble_report
from political_fund_report.categories import (
    CATEGORIES,
    POLITICAL_ACTIVITY_FAMILIES,
    REGULAR_EXPENSE_FAMILIES,
    Family,
)
from political_fund_report.config import ReportConfig
from political_fund_report.errors import ContractViolation
from political_fund_report.models import PersonnelSection, Section
from political_fund_report.pmap import p_map
from tests.helpers.builders import make_profile, make_tx


def _inputs() -> dict[str, list]:
    return {
        "other-income": [make_tx("other-income", 150_000, id=1), make_tx("other-income", 30_000, id=2)],
        "individual-donations": [make_tx("individual-donations", 80_000, id=3)],
        "utilities": [make_tx("utilities", 120_000, id=4), make_tx("utilities", 9_000, id=5)],
        "personnel-costs": [make_tx("personnel-costs", 200_000, id=6)],
        "organizational-activities": [
            make_tx("organizational-activities", 60_000, id=7, friendly_category="旅費"),
            make_tx("organizational-activities", 70_000, id=8, friendly_category="会議費"),
        ],
        "branch-grants-expenses": [make_tx("branch-grants-expenses", 10_000, id=9)],
    }


# ---- assembly ----------------------------------------------------------------


def test_assembling_twice_gives_equal_reports():
    inputs = _inputs()
    first = assemble_report(make_profile(), inputs)
    second = assemble_report(make_profile(), inputs)

    assert first.report == second.report
    assert first.validation == second.validation


def test_concurrency_does_not_change_the_result():
    inputs = _inputs()
    inline = assemble_report(make_profile(), inputs, config=ReportConfig(concurrency=1))
    pooled = assemble_report(make_profile(), inputs, config=ReportConfig(concurrency=8))

    assert inline.report == pooled.report


def test_sections_are_routed_by_category_key():
    report = assemble_report(make_profile(), _inputs()).report

    assert report.income.other_income.total_amount == 180_000
    assert report.income.other_income.under_threshold_amount == 30_000
    assert report.donations.personal_donations.total_amount == 80_000
    assert report.expenses.utility.total_amount == 129_000
    assert report.expenses.personnel == PersonnelSection(200_000)
    assert [s.himoku for s in report.expenses.organization] == ["会議費", "旅費"]
    assert report.expenses.branch_grants.total_amount == 10_000
    assert report.income.loan_income == Section.empty()
    assert report.expenses.election == ()


def test_unreported_categories_are_skipped():
    result = assemble_report(
        make_profile(), {"corporate-donations": [make_tx("corporate-donations", 1_000_000)]}
    )

    assert result.is_valid
    assert result.report.donations.personal_donations == Section.empty()


def test_unknown_category_key_is_a_contract_violation():
    with pytest.raises(ContractViolation, match="unknown category key"):
        assemble_report(make_profile(), {"mystery": []})


def test_transaction_filed_under_another_key_is_a_contract_violation():
    with pytest.raises(ContractViolation, match="supplied under"):
        assemble_report(make_profile(), {"utilities": [make_tx("office-expenses", 10)]})


def test_profile_identity_flows_into_report():
    report = assemble_report(make_profile(political_organization_id="org-9", financial_year=2024), {}).report

    assert report.organization_id == "org-9"
    assert report.financial_year == 2024


def test_every_family_lands_in_its_own_field():
    txs = {info.key: [make_tx(info.key, 500_000)] for info in CATEGORIES}
    expected = Counter(info.family for info in CATEGORIES)

    expenses = assemble_report(make_profile(), txs).report.expenses

    for family in REGULAR_EXPENSE_FAMILIES:
        assert expenses.regular(family).total_amount == 500_000 * expected[family]
    for family in POLITICAL_ACTIVITY_FAMILIES:
        assert sum(s.total_amount for s in expenses.political(family)) == 500_000 * expected[family]
    assert expenses.personnel.total_amount == 500_000 * expected[Family.PERSONNEL]


def test_prior_year_carryover_is_stored_on_the_report():
    report = assemble_report(make_profile(), {}, prior_year_carryover=12_000).report

    assert report.prior_year_carryover == 12_000


# ---- p_map -------------------------------------------------------------------


def test_p_map_preserves_input_order_under_concurrency():
    def slow_for_small(n: int) -> int:
        time.sleep(0.002 * (10 - n))
        return n * n

    assert p_map(range(10), slow_for_small, concurrency=4) == [n * n for n in range(10)]


def test_p_map_concurrency_one_runs_on_caller_thread():
    caller = threading.get_ident()
    threads = p_map([1, 2, 3], lambda _: threading.get_ident(), concurrency=1)

    assert threads == [caller] * 3


def test_p_map_bounds_in_flight_calls():
    lock = threading.Lock()
    active = 0
    peak = 0

    def track(_: int) -> None:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.01)
        with lock:
            active -= 1

    p_map(range(12), track, concurrency=3)

    assert 1 <= peak <= 3


def test_p_map_stop_on_error_reraises_first_failure():
    def boom(n: int) -> int:
        if n == 2:
            raise KeyError(n)
        return n

    with pytest.raises(KeyError):
        p_map(range(5), boom, concurrency=2)


def test_p_map_collects_failures_when_not_stopping():
    def boom(n: int) -> int:
        if n % 2:
            raise ValueError(n)
        return n

    with pytest.raises(ExceptionGroup) as excinfo:
        p_map(range(6), boom, concurrency=3, stop_on_error=False)
    assert sorted(e.args[0] for e in excinfo.value.exceptions) == [1, 3, 5]


@pytest.mark.parametrize("bad", [0, -1, True])
def test_p_map_rejects_invalid_concurrency(bad):
    with pytest.raises(ValueError):
        p_map([1], lambda x: x, concurrency=bad)


def test_single_key_families_keep_the_callers_order():
    # Slices are sorted by the source; a family fed by one key is not re-sorted.
    txs = [
        make_tx("loans", 1, id=20, on=date(2025, 2, 1)),
        make_tx("loans", 2, id=21, on=date(2025, 1, 1)),
    ]
    report = assemble_report(make_profile(), {"loans": txs}).report

    assert [r.kingaku for r in report.income.loan_income.rows] == [1, 2]
