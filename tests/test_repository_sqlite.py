from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from db.client import dispose_engine, session_scope
from db.models.report import RpTransaction

from political_fund_report.errors import ContractViolation
from political_fund_report.models import Transaction
from political_fund_report.repository import SqlReportSource, load_report_inputs
from tests.helpers.builders import make_profile, make_tx
from tests.helpers.db import bootstrap_sqlite_db, seed_report


@pytest.fixture
def db_url(tmp_path: Path) -> Iterator[str]:
    url = bootstrap_sqlite_db(tmp_path / "report.db")
    yield url
    dispose_engine()


def test_load_report_inputs_groups_sorted_transactions(db_url: str):
    seed_report(
        database_url=db_url,
        profile=make_profile(),
        transactions=[
            make_tx("utilities", 30_000, id=3, on=date(2025, 3, 1)),
            make_tx("utilities", 20_000, id=2, on=date(2025, 1, 1)),
            make_tx("utilities", 10_000, id=1, on=date(2025, 3, 1)),
            make_tx("other-income", 150_000, id=4, transaction_date=None),
            make_tx("other-income", 50_000, id=5, on=date(2025, 12, 31)),
            make_tx("membership-fees", 5_000, id=6),
        ],
        closing_balances={2024: Decimal("12345.6")},
    )

    with session_scope(database_url=db_url) as session:
        inputs = load_report_inputs(SqlReportSource(session), "org-1", 2025)

    assert inputs.profile == make_profile()
    assert [t.id for t in inputs.transactions_by_category["utilities"]] == [2, 1, 3]
    assert [t.id for t in inputs.transactions_by_category["other-income"]] == [5, 4]
    assert inputs.transactions_by_category["loans"] == []
    assert "membership-fees" not in inputs.transactions_by_category
    assert inputs.prior_year_carryover == 12_346


def test_transactions_round_trip_through_the_table(db_url: str):
    tx = make_tx("office-expenses", Decimal("1234.50"), id=7, memo="家賃 4月分")
    seed_report(database_url=db_url, profile=make_profile(), transactions=[tx])

    with session_scope(database_url=db_url) as session:
        (loaded,) = SqlReportSource(session).fetch_transactions("org-1", 2025, ["office-expenses"])

    assert isinstance(loaded, Transaction)
    assert loaded == tx


def test_missing_profile_raises_lookup_error(db_url: str):
    with session_scope(database_url=db_url) as session:
        with pytest.raises(LookupError, match="org-404"):
            load_report_inputs(SqlReportSource(session), "org-404", 2025)


def test_missing_prior_year_balance_is_zero(db_url: str):
    seed_report(database_url=db_url, profile=make_profile(), closing_balances={2023: 999})

    with session_scope(database_url=db_url) as session:
        assert SqlReportSource(session).fetch_prior_year_carryover_balance("org-1", 2025) == 0


def test_other_organizations_and_years_are_excluded(db_url: str):
    seed_report(
        database_url=db_url,
        profile=make_profile(),
        transactions=[make_tx("loans", 1, id=1), make_tx("loans", 2, id=2, on=date(2024, 6, 1))],
    )
    seed_report(
        database_url=db_url,
        profile=make_profile(id="profile-2", political_organization_id="org-2"),
        transactions=[make_tx("loans", 3, id=3)],
    )

    with session_scope(database_url=db_url) as session:
        txs = SqlReportSource(session).fetch_transactions("org-1", 2025, ["loans"])

    assert [t.id for t in txs] == [1]


class _LeakySource:
    """Returns a transaction for a key nobody asked for."""

    def fetch_profile(self, org_id, year):
        return make_profile()

    def fetch_transactions(self, org_id, year, category_keys):
        return [make_tx("party-income", 10)]

    def fetch_prior_year_carryover_balance(self, org_id, year):
        return 0


def test_unrequested_category_from_source_is_a_contract_violation():
    with pytest.raises(ContractViolation, match="party-income"):
        load_report_inputs(_LeakySource(), "org-1", 2025)


def test_malformed_row_is_a_contract_violation(db_url: str):
    seed_report(database_url=db_url, profile=make_profile(), transactions=[make_tx("loans", 1, id=1)])
    with session_scope(database_url=db_url) as session:
        session.get(RpTransaction, 1).category_key = ""

    with session_scope(database_url=db_url) as session:
        with pytest.raises(ContractViolation, match="rp_transactions id=1"):
            SqlReportSource(session).fetch_transactions("org-1", 2025, [""])
