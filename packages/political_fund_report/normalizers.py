"""Amount and text normalizers shared by aggregators and serializers.

Every monetary value written to the report passes through
:func:`round_amount` (round-half-up to whole yen) and every free-text cell
through :func:`sanitize_text`. Dates in row cells are Japanese-era strings
produced by :func:`format_wareki_date`.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

type AmountLike = int | float | Decimal | str | None

# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

_ZERO = Decimal(0)


def _to_decimal(raw: AmountLike) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, int):
        return Decimal(raw)
    try:
        # str() first so floats keep their shortest repr rather than the
        # full binary expansion.
        return Decimal(str(raw).strip())
    except InvalidOperation:
        return None


def _finite(raw: AmountLike) -> Decimal | None:
    d = _to_decimal(raw)
    if d is None or not d.is_finite():
        return None
    return d


def resolve_amount(debit: AmountLike, credit: AmountLike) -> Decimal:
    """Return the income-side amount of a double-entry row.

    ``credit`` wins when it is finite and positive; otherwise ``debit`` is
    used when finite; otherwise zero.
    """

    c = _finite(credit)
    if c is not None and c > 0:
        return c
    d = _finite(debit)
    return d if d is not None else _ZERO


def resolve_expense_amount(debit: AmountLike, credit: AmountLike) -> Decimal:
    """Mirror of :func:`resolve_amount` for expense sections (debit first)."""

    d = _finite(debit)
    if d is not None and d > 0:
        return d
    c = _finite(credit)
    return c if c is not None else _ZERO


def round_amount(value: AmountLike) -> int:
    """Round to whole yen, half away from zero. Missing/non-finite gives 0."""

    d = _finite(value)
    if d is None:
        return 0
    return int(d.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_amount(value: AmountLike) -> str:
    # Plain integer string: no separators, no currency mark.
    return str(round_amount(value))


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

_WS_RE = re.compile(r"\s+")

_MARKUP_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


def sanitize_text(value: str | None, max_len: int | None = None) -> str:
    """Collapse whitespace runs, trim, and truncate to ``max_len`` chars."""

    if not value:
        return ""
    normalized = _WS_RE.sub(" ", value).strip()
    if max_len and len(normalized) > max_len:
        return normalized[:max_len]
    return normalized


def escape_markup(value: str) -> str:
    """Escape ``& < > " '`` for embedding in element text."""

    out = value
    for raw, entity in _MARKUP_ESCAPES:
        out = out.replace(raw, entity)
    return out


def build_remarks(
    transaction_no: str | None,
    memo: str | None,
    memo_max: int = 160,
    total_max: int = 200,
) -> str:
    """Compose the BIKOU cell: ``"<memo> / MF行番号: <no>"``.

    The memo is sanitized and cut to ``memo_max`` before the source-row
    suffix is appended; the combined text is then cut to ``total_max``.
    Without a memo only the suffix is returned.
    """

    suffix = f"MF行番号: {transaction_no or '-'}"
    memo_text = sanitize_text(memo, memo_max)
    combined = f"{memo_text} / {suffix}" if memo_text else suffix
    return sanitize_text(combined, total_max) or suffix


# ---------------------------------------------------------------------------
# Dates (Japanese era calendar)
# ---------------------------------------------------------------------------

# (era letter, first day, offset so that era_year = gregorian_year - offset)
_ERAS: tuple[tuple[str, date, int], ...] = (
    ("R", date(2019, 5, 1), 2018),
    ("H", date(1989, 1, 8), 1988),
    ("S", date(1926, 12, 25), 1925),
)


def format_wareki_date(value: date | datetime | None) -> str:
    """Format ``value`` as ``"<era><year>/<month>/<day>"`` e.g. ``"R7/1/15"``.

    Returns ``""`` for ``None`` or non-date input. Dates before the Showa
    era raise ``ValueError``.
    """

    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        return ""
    for letter, start, offset in _ERAS:
        if value >= start:
            return f"{letter}{value.year - offset}/{value.month}/{value.day}"
    raise ValueError(f"Unsupported date (before Showa era): {value.isoformat()}")


__all__ = [
    "AmountLike",
    "build_remarks",
    "escape_markup",
    "format_amount",
    "format_wareki_date",
    "resolve_amount",
    "resolve_expense_amount",
    "round_amount",
    "sanitize_text",
]
