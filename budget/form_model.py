"""
Monthly form model.

Reads the twelve income/expense field pairs of the monthly form and turns
them into sanitized numbers.  Field lookups are resolved once, at
construction, into a mapping of month key -> (income accessor, expense
accessor), so the model can be driven by a live dict of posted form values
or by any other source of field text.

Sanitizing rules:
    - text is parsed like the browser's parseFloat (leading number wins)
    - missing, empty, unparsable or non-finite text reads as 0
    - every value is clamped into [AMOUNT_MIN, AMOUNT_MAX]
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Callable, Mapping, MutableMapping, Optional

MONTH_KEYS: tuple[str, ...] = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
MONTH_LABELS: tuple[str, ...] = tuple(m.capitalize() for m in MONTH_KEYS)

AMOUNT_MIN = 0.0
AMOUNT_MAX = 50000.0

INCOME = "income"
EXPENSE = "expense"

# Optional sign, digits with optional fraction (or a bare fraction), exponent.
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

FieldAccessor = Callable[[], Optional[str]]


def field_id(kind: str, month: str) -> str:
    """Return the form field identifier for *kind* ("income"/"expense") and *month*."""
    return f"{kind}-{month}"


FIELD_IDS: frozenset[str] = frozenset(
    field_id(kind, m) for m in MONTH_KEYS for kind in (INCOME, EXPENSE)
)


def clamp(value: float, low: float = AMOUNT_MIN, high: float = AMOUNT_MAX) -> float:
    return min(max(value, low), high)


def parse_amount(raw: Optional[str]) -> float:
    """Parse one field's text into a clamped, finite amount.

    >>> parse_amount("1200.50")
    1200.5
    >>> parse_amount("99999")
    50000.0
    >>> parse_amount("abc")
    0.0
    """
    if raw is None:
        return 0.0
    match = _LEADING_NUMBER.match(str(raw).lstrip())
    if not match:
        return 0.0
    try:
        value = float(match.group(0))
    except (OverflowError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return clamp(value)


@dataclass(frozen=True)
class MonthlyEntry:
    """One month's sanitized figures."""

    month: str
    income: float = 0.0
    expense: float = 0.0


@dataclass(frozen=True)
class FormData:
    """Result of one form read: parallel income/expense sequences in calendar order."""

    income: tuple[float, ...] = field(default_factory=lambda: (0.0,) * len(MONTH_KEYS))
    expense: tuple[float, ...] = field(default_factory=lambda: (0.0,) * len(MONTH_KEYS))

    def to_dict(self) -> dict[str, list[float]]:
        return {"income": list(self.income), "expense": list(self.expense)}


class FormModel:
    """Sanitizing reader over the monthly form's 24 fields.

    Args:
        fields: Mapping of month key to a pair of accessors
            ``(income, expense)``.  Months missing from the mapping, or a
            ``None`` accessor, read as 0.
    """

    def __init__(
        self,
        fields: Mapping[str, tuple[Optional[FieldAccessor], Optional[FieldAccessor]]],
    ) -> None:
        self._fields = {m: fields.get(m, (None, None)) for m in MONTH_KEYS}

    @classmethod
    def from_values(cls, values: MutableMapping[str, str]) -> "FormModel":
        """Bind accessors to a live mapping of field id -> text.

        Later changes to *values* are seen by subsequent reads.
        """
        def accessor(fid: str) -> FieldAccessor:
            return lambda: values.get(fid)

        return cls({
            m: (accessor(field_id(INCOME, m)), accessor(field_id(EXPENSE, m)))
            for m in MONTH_KEYS
        })

    @staticmethod
    def _read_field(accessor: Optional[FieldAccessor]) -> float:
        if accessor is None:
            return 0.0
        return parse_amount(accessor())

    def entries(self) -> list[MonthlyEntry]:
        """Return one sanitized entry per month, January first."""
        return [
            MonthlyEntry(
                month=m,
                income=self._read_field(inc),
                expense=self._read_field(exp),
            )
            for m, (inc, exp) in self._fields.items()
        ]

    def read(self) -> FormData:
        entries = self.entries()
        return FormData(
            income=tuple(e.income for e in entries),
            expense=tuple(e.expense for e in entries),
        )
