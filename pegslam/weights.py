"""Catch weight conversion between pounds/ounces and total ounces."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable, Union

OUNCES_PER_POUND = 16

WeightValue = Union[int, float, str, None]

_LB_OZ_RE = re.compile(r"(\d+)\s*lb\s*(\d+)\s*oz", re.IGNORECASE)
_LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")


@dataclass(frozen=True)
class WeightDisplay:
    pounds: int
    ounces: int
    total_ounces: int

    def to_dict(self) -> dict:
        return {"pounds": self.pounds, "ounces": self.ounces, "totalOunces": self.total_ounces}


def convert_to_ounces(pounds: int, ounces: int) -> int:
    """Return the total ounces for a pounds + ounces reading."""
    return pounds * OUNCES_PER_POUND + ounces


def convert_from_ounces(total_ounces: int) -> WeightDisplay:
    """Split total ounces into whole pounds and remaining ounces."""
    pounds, ounces = divmod(int(total_ounces), OUNCES_PER_POUND)
    return WeightDisplay(pounds=pounds, ounces=ounces, total_ounces=int(total_ounces))


def _leading_float(text: str) -> float | None:
    """Parse the numeric prefix of ``text`` ("12.5kg" -> 12.5), or None."""
    match = _LEADING_NUMBER_RE.match(text)
    if not match:
        return None
    return float(match.group(1))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_weight(value: WeightValue) -> str:
    """
    Render total ounces as ``"X lb Y oz"``.

    Strings already containing ``lb`` are returned unchanged. Zero, NaN and
    unparsable values render as ``"0 lb 0 oz"``.
    """
    if isinstance(value, str):
        if "lb" in value:
            return value
        parsed = _leading_float(value)
    elif value is None:
        parsed = None
    else:
        parsed = float(value)

    if parsed is None or math.isnan(parsed) or parsed == 0:
        return "0 lb 0 oz"

    display = convert_from_ounces(_round_half_up(parsed))
    return f"{display.pounds} lb {display.ounces} oz"


def parse_weight(text: str | None) -> int:
    """
    Parse a weight string into total ounces.

    Accepts ``"12 lb 4 oz"`` (any case and spacing) or a plain number of
    ounces, which is rounded. Anything else is 0.
    """
    if not text:
        return 0

    match = _LB_OZ_RE.search(text)
    if match:
        return convert_to_ounces(int(match.group(1)), int(match.group(2)))

    numeric = _leading_float(text)
    if numeric is not None and not math.isnan(numeric):
        return _round_half_up(numeric)
    return 0


def sum_weights(values: Iterable[WeightValue]) -> int:
    """Sum a mix of ounce counts and weight strings."""
    total = 0
    for value in values:
        if isinstance(value, str):
            total += parse_weight(value)
        elif value is not None:
            total += value
    return total


def weight_value(text: WeightValue) -> float:
    """
    Numeric value of a stored leaderboard weight.

    Every character except digits, ``.`` and ``-`` is dropped before
    parsing, so ``"12.5 lbs"`` is 12.5. Unparsable input is 0.0.
    """
    if text is None:
        return 0.0
    if isinstance(text, (int, float)):
        return float(text)
    cleaned = _NON_NUMERIC_RE.sub("", text)
    numeric = _leading_float(cleaned)
    if numeric is None or math.isnan(numeric):
        return 0.0
    return numeric


def format_total(value: float) -> str:
    """Render an aggregated weight without a trailing ``.0`` for whole numbers."""
    if float(value).is_integer():
        return str(int(value))
    return str(round(value, 3))
