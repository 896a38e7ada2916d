"""Report assembly: route transaction slices to aggregators and join the results.

The per-family aggregations read disjoint inputs and return fresh values, so
they are fanned out with :func:`~.pmap.p_map` and joined before validation.
Nothing here keeps state between calls; identical inputs give equal
``ReportData``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .categories import (
    CATEGORY_BY_KEY,
    UNREPORTED_CATEGORY_KEYS,
    Family,
)
from .config import ReportConfig
from .errors import ContractViolation
from .logging_setup import get_logger
from .models import (
    DonationData,
    ExpenseData,
    IncomeData,
    PersonnelSection,
    PoliticalActivitySheet,
    Profile,
    ReportData,
    Section,
    Transaction,
)
from .pmap import p_map
from .sections import aggregate_family
from .validation import ValidationResult, validate_report

_logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AssemblyResult:
    report: ReportData
    validation: ValidationResult

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid


def _slices_by_family(
    transactions_by_category: Mapping[str, Sequence[Transaction]],
) -> dict[Family, list[Transaction]]:
    slices: dict[Family, list[Transaction]] = {f: [] for f in Family}
    merged: set[Family] = set()
    for key, txs in transactions_by_category.items():
        info = CATEGORY_BY_KEY.get(key)
        if info is None:
            if key in UNREPORTED_CATEGORY_KEYS:
                _logger.debug("assemble_report:skip category=%s count=%d", key, len(txs))
                continue
            raise ContractViolation(f"unknown category key {key!r}")
        for tx in txs:
            if tx.category_key != key:
                raise ContractViolation(
                    f"transaction id={tx.id} has category_key={tx.category_key!r} "
                    f"but was supplied under {key!r}"
                )
        if slices[info.family]:
            merged.add(info.family)
        slices[info.family].extend(txs)

    # Slices arrive sorted per key; only families fed by several keys need
    # re-sorting into one (date, id) sequence.
    for family in merged:
        slices[family].sort(key=lambda t: (t.transaction_date is None, t.transaction_date, t.id))
    return slices


def assemble_report(
    profile: Profile,
    transactions_by_category: Mapping[str, Sequence[Transaction]],
    *,
    config: ReportConfig | None = None,
    prior_year_carryover: int = 0,
) -> AssemblyResult:
    """Aggregate every section for ``profile`` and validate the result.

    Parameters
    ----------
    profile:
        Organization metadata for the header form.
    transactions_by_category:
        Transactions keyed by ``category_key``, each list already restricted
        to the organization and year and sorted by date then id.
    config:
        Thresholds and concurrency; defaults to ``ReportConfig()``.
    prior_year_carryover:
        Closing balance of the previous year. Stored on the report, so the
        negative-carryover warning and SYUUSHI07_02 read the same value.

    Raises
    ------
    ContractViolation
        A key is not in the category catalogue, or a transaction was filed
        under a key other than its own.
    """

    cfg = config or ReportConfig()
    slices = _slices_by_family(transactions_by_category)
    families = list(Family)
    results = p_map(
        families,
        lambda f: aggregate_family(f, slices[f], config=cfg),
        concurrency=cfg.concurrency,
    )

    sections: dict[Family, Section] = {}
    sheets: dict[Family, tuple[PoliticalActivitySheet, ...]] = {}
    personnel = PersonnelSection()
    for family, result in zip(families, results, strict=True):
        if isinstance(result, PersonnelSection):
            personnel = result
        elif isinstance(result, Section):
            sections[family] = result
        else:
            sheets[family] = result

    report = ReportData(
        profile=profile,
        donations=DonationData(personal_donations=sections[Family.PERSONAL_DONATIONS]),
        income=IncomeData(
            business_income=sections[Family.BUSINESS_INCOME],
            loan_income=sections[Family.LOAN_INCOME],
            grant_income=sections[Family.GRANT_INCOME],
            other_income=sections[Family.OTHER_INCOME],
        ),
        expenses=ExpenseData(
            personnel=personnel,
            utility=sections[Family.UTILITY],
            supplies=sections[Family.SUPPLIES],
            office=sections[Family.OFFICE],
            organization=sheets[Family.ORGANIZATION],
            election=sheets[Family.ELECTION],
            publication=sheets[Family.PUBLICATION],
            advertising=sheets[Family.ADVERTISING],
            fundraising_party=sheets[Family.FUNDRAISING_PARTY],
            other_business=sheets[Family.OTHER_BUSINESS],
            research=sheets[Family.RESEARCH],
            donation_grant=sheets[Family.DONATION_GRANT],
            other_political=sheets[Family.OTHER_POLITICAL],
            branch_grants=sections[Family.BRANCH_GRANTS],
        ),
        prior_year_carryover=prior_year_carryover,
    )
    validation = validate_report(report)
    _logger.info(
        "assemble_report:done org=%s year=%s errors=%d warnings=%d",
        report.organization_id,
        report.financial_year,
        len(validation.errors),
        len(validation.warnings),
    )
    return AssemblyResult(report=report, validation=validation)


__all__ = ["AssemblyResult", "assemble_report"]
