"""Decimal helpers shared by the accounting and execution layers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
ONE = Decimal("1")

Number = Decimal | int | float | str


def optional_decimal(value: Number | None) -> Decimal | None:
    """Coerce external numeric input to Decimal, keeping missing values as None.

    Floats are passed through ``str()`` so binary noise is not carried into
    the accounting. Blank strings count as missing.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError("bool is not a numeric amount")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"not a decimal amount: {value!r}") from exc


def to_decimal(value: Number | None, default: Decimal = ZERO) -> Decimal:
    """Coerce external numeric input to Decimal, substituting a default when missing."""
    parsed = optional_decimal(value)
    return default if parsed is None else parsed


def quantize(value: Decimal, precision: int = 6) -> Decimal:
    """Round half away from zero at a fixed number of decimal places."""
    quantum = ONE.scaleb(-max(0, int(precision)))
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def scale_down(raw: Decimal, decimals: int) -> Decimal:
    """Divide a fixed-point integer amount by 10**decimals."""
    return raw.scaleb(-int(decimals))


def safe_div(numerator: Decimal, denominator: Decimal | None) -> Decimal:
    """Return numerator / denominator, or zero when the denominator is missing or zero."""
    if denominator is None or denominator == 0:
        return ZERO
    return numerator / denominator
