"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the reporting tables read by ``political_fund_report``.
"""

from .report import Base, RpBalanceSnapshot, RpOrganizationProfile, RpTransaction

__all__ = [
    "Base",
    "RpBalanceSnapshot",
    "RpOrganizationProfile",
    "RpTransaction",
]
