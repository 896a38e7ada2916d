"""Exception types raised by the report engine.

- :class:`ContractViolation` marks programmer or upstream-filtering bugs
  (a transaction routed to the wrong section, malformed fetch results, an
  unknown form id). It is never caught inside the engine.
- :class:`EncodingError` is raised when the finished document cannot be
  transcoded to the Shift_JIS code page under the strict policy.
- :class:`ReportValidationError` is raised by export when the validation
  pass produced ``error`` severity issues.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .validation import ValidationResult


class ContractViolation(RuntimeError):
    """An input reached a component that must never receive it."""


@dataclass(frozen=True, slots=True)
class UnencodableChar:
    """One character that has no mapping in the target code page."""

    char: str
    line: int
    column: int

    @property
    def codepoint(self) -> str:
        return f"U+{ord(self.char):04X}"

    def describe(self) -> str:
        return f"{self.char!r} ({self.codepoint}) at line {self.line}, column {self.column}"


class EncodingError(ValueError):
    """The document contains characters outside the target code page."""

    def __init__(self, encoding: str, problems: list[UnencodableChar]) -> None:
        self.encoding = encoding
        self.problems = problems
        shown = "; ".join(p.describe() for p in problems[:5])
        more = f" (+{len(problems) - 5} more)" if len(problems) > 5 else ""
        super().__init__(
            f"{len(problems)} character(s) cannot be encoded as {encoding}: {shown}{more}"
        )


class ReportValidationError(ValueError):
    """Export was requested for a report whose validation has errors."""

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        super().__init__(
            f"report has {len(result.errors)} validation error(s); export is blocked"
        )


__all__ = [
    "ContractViolation",
    "EncodingError",
    "ReportValidationError",
    "UnencodableChar",
]
