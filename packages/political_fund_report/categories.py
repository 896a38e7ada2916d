"""Category-key catalogue and the report section family each key feeds.

Transactions carry a stable machine ``category_key`` (e.g. ``"utilities"``).
Each key maps to exactly one section family; families map to a legal form
(``SYUUSHI07_xx``) and, for the multi-part forms, a ``KUBUN`` slot.

Keys that the engine does not report (membership fees, corporate donations,
party income, ...) are listed in :data:`UNREPORTED_CATEGORY_KEYS` so that the
assembler can tell "known but out of scope" apart from "unknown".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Family(StrEnum):
    PERSONAL_DONATIONS = "personal_donations"
    BUSINESS_INCOME = "business_income"
    LOAN_INCOME = "loan_income"
    GRANT_INCOME = "grant_income"
    OTHER_INCOME = "other_income"
    PERSONNEL = "personnel"
    UTILITY = "utility"
    SUPPLIES = "supplies"
    OFFICE = "office"
    ORGANIZATION = "organization"
    ELECTION = "election"
    PUBLICATION = "publication"
    ADVERTISING = "advertising"
    FUNDRAISING_PARTY = "fundraising_party"
    OTHER_BUSINESS = "other_business"
    RESEARCH = "research"
    DONATION_GRANT = "donation_grant"
    OTHER_POLITICAL = "other_political"
    BRANCH_GRANTS = "branch_grants"


@dataclass(frozen=True, slots=True)
class CategoryInfo:
    key: str
    label: str
    family: Family


# Order is significant: it is the KUBUN order on SYUUSHI07_14 / SYUUSHI07_15.
REGULAR_EXPENSE_FAMILIES: tuple[Family, ...] = (
    Family.UTILITY,
    Family.SUPPLIES,
    Family.OFFICE,
)

POLITICAL_ACTIVITY_FAMILIES: tuple[Family, ...] = (
    Family.ORGANIZATION,
    Family.ELECTION,
    Family.PUBLICATION,
    Family.ADVERTISING,
    Family.FUNDRAISING_PARTY,
    Family.OTHER_BUSINESS,
    Family.RESEARCH,
    Family.DONATION_GRANT,
    Family.OTHER_POLITICAL,
)

CATEGORIES: tuple[CategoryInfo, ...] = (
    CategoryInfo("individual-donations", "個人からの寄附", Family.PERSONAL_DONATIONS),
    CategoryInfo(
        "publication-income",
        "機関紙誌の発行その他の事業による収入",
        Family.BUSINESS_INCOME,
    ),
    CategoryInfo("loans", "借入金", Family.LOAN_INCOME),
    CategoryInfo(
        "grants",
        "本部又は支部から供与された交付金に係る収入",
        Family.GRANT_INCOME,
    ),
    CategoryInfo("other-income", "その他の収入", Family.OTHER_INCOME),
    CategoryInfo("personnel-costs", "人件費", Family.PERSONNEL),
    CategoryInfo("utilities", "光熱水費", Family.UTILITY),
    CategoryInfo("equipment-supplies", "備品・消耗品費", Family.SUPPLIES),
    CategoryInfo("office-expenses", "事務所費", Family.OFFICE),
    CategoryInfo("organizational-activities", "組織活動費", Family.ORGANIZATION),
    CategoryInfo("election-expenses", "選挙関係費", Family.ELECTION),
    CategoryInfo("publication-expenses", "機関紙誌の発行事業費", Family.PUBLICATION),
    CategoryInfo("advertising-expenses", "宣伝事業費", Family.ADVERTISING),
    CategoryInfo(
        "fundraising-party-expenses",
        "政治資金パーティー開催事業費",
        Family.FUNDRAISING_PARTY,
    ),
    CategoryInfo("other-business-expenses", "その他の事業費", Family.OTHER_BUSINESS),
    CategoryInfo("research-expenses", "調査研究費", Family.RESEARCH),
    CategoryInfo("donations-grants-expenses", "寄附・交付金", Family.DONATION_GRANT),
    CategoryInfo("other-expenses", "その他の経費", Family.OTHER_POLITICAL),
    CategoryInfo(
        "branch-grants-expenses",
        "本部又は支部に対する交付金",
        Family.BRANCH_GRANTS,
    ),
)

UNREPORTED_CATEGORY_KEYS: frozenset[str] = frozenset(
    {
        "membership-fees",
        "specific-individual-donations",
        "corporate-donations",
        "political-donations",
        "anonymous-donations",
        "party-income",
        "mediated-donations",
        "mediated-party-income",
    }
)

CATEGORY_BY_KEY: dict[str, CategoryInfo] = {c.key: c for c in CATEGORIES}

FAMILY_LABELS: dict[Family, str] = {c.family: c.label for c in CATEGORIES}


def category_keys_for(family: Family) -> frozenset[str]:
    """Return every category key routed to ``family``."""

    return frozenset(c.key for c in CATEGORIES if c.family is family)


def family_for_key(key: str) -> Family | None:
    """Return the family for ``key`` or ``None`` when the key is not reported."""

    info = CATEGORY_BY_KEY.get(key)
    return info.family if info is not None else None


__all__ = [
    "CATEGORIES",
    "CATEGORY_BY_KEY",
    "CategoryInfo",
    "FAMILY_LABELS",
    "Family",
    "POLITICAL_ACTIVITY_FAMILIES",
    "REGULAR_EXPENSE_FAMILIES",
    "UNREPORTED_CATEGORY_KEYS",
    "category_keys_for",
    "family_for_key",
]
