"""
Parses the free-text band thresholds used by risk data points ("720-850", "< 1.0",
"> 60 days", "5+ missed payments", "Class A") into structured ranges.

Parsing happens once, when a data point is built; scoring only calls `contains`.
Supported forms, tried in this order:
  - inclusive range:    "720-850", "65% - 75%", "New/Recent (i.e. 0-2.6y)"
  - comparison:         "< 1.0", ">= 3", "Old (i.e. > 5.34 yrs old)"
  - worded comparison:  "Below 580", "Under 30 days", "At least 3"
  - at-least suffix:    "5+ missed payments"
  - exact number:       "0 issues", "1 minor issue" (number first, unit words after)
  - categorical label:  text without digits or operators, e.g. "Class A", "No Disputes"
Anything else raises UnparseableThresholdError.
"""
from __future__ import annotations

import operator as _op
import re
from dataclasses import dataclass
from typing import Any

from services.exceptions import UnparseableThresholdError

_NUM = r"\$?(-?\d[\d,]*(?:\.\d+)?)"

_RANGE_RE = re.compile(_NUM + r"\s*%?\s*[a-z]*\s*(?:-|–|\bto\b)\s*" + _NUM, re.IGNORECASE)
_COMPARE_RE = re.compile(r"(<=|>=|≤|≥|=<|=>|<|>|=)\s*" + _NUM)
_AT_LEAST_RE = re.compile(r"^[^\d<>=]*?" + _NUM + r"\s*\+")
_WORD_COMPARE_RE = re.compile(
    r"^(less than|fewer than|below|under|more than|greater than|above|over|at least|at most|up to)\s+" + _NUM,
    re.IGNORECASE,
)
_EXACT_RE = re.compile(r"^" + _NUM + r"\s*%?(?:\s+[a-z][a-z\s]*)?$", re.IGNORECASE)
_OPERATOR_CHARS = re.compile(r"[<>=≤≥]")

_OPERATORS = {
    "<": _op.lt,
    "<=": _op.le,
    "=<": _op.le,
    "≤": _op.le,
    ">": _op.gt,
    ">=": _op.ge,
    "=>": _op.ge,
    "≥": _op.ge,
    "=": _op.eq,
    "==": _op.eq,
}

_CANONICAL = {"=<": "<=", "≤": "<=", "=>": ">=", "≥": ">=", "=": "=="}

_WORD_OPERATORS = {
    "less than": "<",
    "fewer than": "<",
    "below": "<",
    "under": "<",
    "more than": ">",
    "greater than": ">",
    "above": ">",
    "over": ">",
    "at least": ">=",
    "at most": "<=",
    "up to": "<=",
}


def _to_number(raw: str) -> float:
    return float(raw.replace(",", ""))


@dataclass(frozen=True)
class ThresholdRange:
    """
    One parsed band threshold.
    kind is "range" (low/high inclusive), "compare" (operator/bound) or "label".
    """
    kind: str
    text: str
    low: float | None = None
    high: float | None = None
    operator: str | None = None
    bound: float | None = None
    label: str | None = None

    def contains(self, value: Any) -> bool:
        """True when `value` falls in this band. Type mismatches never match."""
        if self.kind == "label":
            return isinstance(value, str) and value.strip().casefold() == self.label
        number = as_number(value)
        if number is None:
            return False
        if self.kind == "range":
            return self.low <= number <= self.high
        return _OPERATORS[self.operator](number, self.bound)

    def describe(self) -> str:
        if self.kind == "range":
            return f"{self.low:g}-{self.high:g}"
        if self.kind == "compare":
            return f"{self.operator} {self.bound:g}"
        return self.label or ""


def as_number(value: Any) -> float | None:
    """Coerce an actual value to float; None when it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return _to_number(value.strip().rstrip("%"))
        except ValueError:
            return None
    return None


def parse_threshold(text: str) -> ThresholdRange:
    if text is None or not str(text).strip():
        raise UnparseableThresholdError(str(text))
    raw = str(text).strip()

    m = _RANGE_RE.search(raw)
    if m:
        low, high = _to_number(m.group(1)), _to_number(m.group(2))
        if low > high:
            raise UnparseableThresholdError(raw)
        return ThresholdRange(kind="range", text=raw, low=low, high=high)

    m = _COMPARE_RE.search(raw)
    if m:
        op = _CANONICAL.get(m.group(1), m.group(1))
        return ThresholdRange(kind="compare", text=raw, operator=op, bound=_to_number(m.group(2)))

    m = _WORD_COMPARE_RE.match(raw)
    if m:
        op = _WORD_OPERATORS[m.group(1).lower()]
        return ThresholdRange(kind="compare", text=raw, operator=op, bound=_to_number(m.group(2)))

    m = _AT_LEAST_RE.search(raw)
    if m:
        return ThresholdRange(kind="compare", text=raw, operator=">=", bound=_to_number(m.group(1)))

    m = _EXACT_RE.match(raw)
    if m:
        return ThresholdRange(kind="compare", text=raw, operator="==", bound=_to_number(m.group(1)))

    if not any(ch.isdigit() for ch in raw) and not _OPERATOR_CHARS.search(raw):
        return ThresholdRange(kind="label", text=raw, label=raw.casefold())

    raise UnparseableThresholdError(raw)
