"""
Numeric setting values with an optional unit suffix.

Slicer values such as ``0.2``, ``20%`` or ``0.4mm`` are parsed into a
``Measurement`` so relative adjustments (``+5%``, ``-0.05``) can be applied
without losing the original formatting style.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from pydantic import BaseModel

FRACTION_PLACES = 6

_MEASUREMENT_RE = re.compile(r"^(?P<number>-?(?:\d+(?:\.\d*)?|\.\d+))(?P<unit>%|mm)?$")
_ADJUSTMENT_RE = re.compile(
    r"^=?\s*(?P<sign>[+-])\s*(?P<amount>\d+(?:\.\d*)?|\.\d+)(?P<unit>%|mm)?$"
)
_NUMBER_RE = re.compile(r"^\d*\.?\d+$")


class ValueParseError(ValueError):
    """Raised when a value or adjustment string cannot be parsed."""


class UnitMismatchError(ValueParseError):
    """Raised when an adjustment's unit differs from the value it is applied to."""


class Unit(str, Enum):
    NONE = ""
    PERCENT = "%"
    MILLIMETER = "mm"


def _to_decimal(text: str, original: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValueParseError(f"Invalid number: {original!r}") from None


class Measurement(BaseModel):
    """A number with a unit; ``integral`` records whether it was written without a decimal point."""

    model_config = {"frozen": True}

    magnitude: Decimal
    unit: Unit = Unit.NONE
    integral: bool = True

    def format(self) -> str:
        """Render back to slicer text.

        Integral values stay integral; anything else is rounded to
        ``FRACTION_PLACES`` with trailing zeros trimmed.
        """
        if self.integral and self.magnitude == self.magnitude.to_integral_value():
            text = str(int(self.magnitude))
        else:
            quantum = Decimal(1).scaleb(-FRACTION_PLACES)
            text = format(self.magnitude.quantize(quantum, rounding=ROUND_HALF_UP), "f")
            text = text.rstrip("0")
            if text.endswith("."):
                text += "0"
        return f"{text}{self.unit.value}"

    def __str__(self) -> str:
        return self.format()


class RelativeAdjustment(BaseModel):
    """A signed delta such as ``+5%`` or ``-0.05``."""

    model_config = {"frozen": True}

    sign: str
    amount: Decimal
    unit: Unit = Unit.NONE
    integral: bool = True

    def apply(self, current: Measurement) -> Measurement:
        """Apply this delta to ``current``.

        Raises ``UnitMismatchError`` unless the delta and ``current`` carry
        the same unit (both unitless included).  Unitless results are clamped
        at zero.
        """
        if self.unit != current.unit:
            raise UnitMismatchError(
                f"Unit mismatch: expected {current.unit.value or 'no unit'}, "
                f"got {self.unit.value or 'no unit'}"
            )
        delta = self.amount if self.sign == "+" else -self.amount
        magnitude = current.magnitude + delta
        if current.unit is Unit.NONE and magnitude < 0:
            magnitude = Decimal(0)
        return Measurement(
            magnitude=magnitude,
            unit=current.unit,
            integral=current.integral and self.integral,
        )


def parse_measurement(text: str) -> Measurement:
    """
    Parse a slicer value into a ``Measurement``.

    "20"   → 20 (integral)
    "0.2"  → 0.2
    "15%"  → 15 percent
    "0.4mm" → 0.4 millimeter
    """
    value = text.strip()
    match = _MEASUREMENT_RE.match(value)
    if not match:
        raise ValueParseError(f"Invalid value format: {text!r}")
    number = match.group("number")
    return Measurement(
        magnitude=_to_decimal(number, text),
        unit=Unit(match.group("unit") or ""),
        integral="." not in number,
    )


def parse_adjustment(text: str) -> RelativeAdjustment:
    """Parse ``+N``/``-N`` (optionally ``=+N``) with an optional unit."""
    match = _ADJUSTMENT_RE.match(text.strip())
    if not match:
        raise ValueParseError(f"Invalid relative value format: {text!r}")
    amount = match.group("amount")
    return RelativeAdjustment(
        sign=match.group("sign"),
        amount=_to_decimal(amount, text),
        unit=Unit(match.group("unit") or ""),
        integral="." not in amount,
    )


def adjust_value(current: str, adjustment: str) -> str:
    """Apply a relative adjustment string to a value string."""
    return parse_adjustment(adjustment).apply(parse_measurement(current)).format()


def normalize_for_comparison(value: str | None, default_unit: str = "mm") -> str | None:
    """Lower-case a filter value and add ``default_unit`` to bare numbers.

    "0.2" → "0.2mm", "0.2MM" → "0.2mm", "20%" → "20%".
    """
    if value is None or not value.strip():
        return None
    value = value.strip().lower()
    if value.endswith(("mm", "%")):
        return value
    if _NUMBER_RE.match(value):
        return f"{value}{default_unit}"
    return value
