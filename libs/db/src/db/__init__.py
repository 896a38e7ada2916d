"""db: shared database library (SQLAlchemy).

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM models in ``db.models.report`` (re-exported for convenience)
- Engine/session helpers in ``db.client``
"""

from __future__ import annotations

from .models.report import Base, RpBalanceSnapshot, RpOrganizationProfile, RpTransaction

metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "RpBalanceSnapshot",
    "RpOrganizationProfile",
    "RpTransaction",
]
