"""Runtime configuration for report assembly and export.

Thresholds are explicit values handed to the aggregators rather than
module-level constants, so tests and callers can vary them per build.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

type EncodingPolicy = Literal["strict", "replace"]

_POLICY_ENV = "POLITICAL_FUND_REPORT_ENCODING_POLICY"
_CONCURRENCY_ENV = "POLITICAL_FUND_REPORT_CONCURRENCY"

ENCODING_POLICIES: tuple[EncodingPolicy, ...] = ("strict", "replace")


@dataclass(frozen=True, slots=True)
class ReportConfig:
    """Knobs for one report build.

    Attributes
    ----------
    income_threshold:
        Amount (yen) at or above which an other-income transaction is
        itemized on SYUUSHI07_06.
    regular_expense_threshold:
        Itemization threshold for utility/supplies/office (SYUUSHI07_14).
    political_expense_threshold:
        Itemization threshold for the nine political-activity kinds
        (SYUUSHI07_15).
    encoding_policy:
        ``"strict"`` rejects characters outside the Shift_JIS repertoire;
        ``"replace"`` substitutes ``?`` and logs a warning.
    concurrency:
        Maximum number of section aggregations run at once. ``1`` runs
        inline.
    """

    income_threshold: int = 100_000
    regular_expense_threshold: int = 100_000
    political_expense_threshold: int = 50_000
    encoding_policy: EncodingPolicy = "strict"
    concurrency: int = 4

    def __post_init__(self) -> None:
        for name in (
            "income_threshold",
            "regular_expense_threshold",
            "political_expense_threshold",
        ):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
                raise ValueError(f"ReportConfig.{name} must be a positive integer")
        if self.encoding_policy not in ENCODING_POLICIES:
            raise ValueError(
                f"ReportConfig.encoding_policy must be one of {ENCODING_POLICIES}, "
                f"got {self.encoding_policy!r}"
            )
        if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int):
            raise ValueError("ReportConfig.concurrency must be a positive integer")
        if self.concurrency < 1:
            raise ValueError("ReportConfig.concurrency must be a positive integer")

    @classmethod
    def from_env(cls, **overrides: object) -> ReportConfig:
        """Build a config from environment variables plus explicit overrides.

        Reads ``POLITICAL_FUND_REPORT_ENCODING_POLICY`` and
        ``POLITICAL_FUND_REPORT_CONCURRENCY``. Overrides whose value is
        ``None`` are ignored so CLI options can be passed straight through.
        """

        values: dict[str, object] = {}
        policy = os.getenv(_POLICY_ENV)
        if policy:
            values["encoding_policy"] = policy.strip().lower()
        concurrency = os.getenv(_CONCURRENCY_ENV)
        if concurrency:
            try:
                values["concurrency"] = int(concurrency.strip())
            except ValueError as e:
                raise ValueError(
                    f"{_CONCURRENCY_ENV} must be an integer, got {concurrency!r}"
                ) from e
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]


__all__ = ["ENCODING_POLICIES", "EncodingPolicy", "ReportConfig"]
