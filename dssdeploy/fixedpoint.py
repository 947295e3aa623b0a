"""
Fixed-point parameter derivation.

The stablecoin core stores economic parameters as integers with an implied
decimal point:

    WAD   18 fractional digits   token amounts
    RAY   27 fractional digits   rates and price ratios ("spot", "rate", "chi")
    RAD   45 fractional digits   debt ceilings ("line", "Line")

Conversion happens in two stages. ``_prescale`` multiplies the input by 10^10
in floating point and rounds to the nearest integer; this is the only step
that can lose precision. Everything after it is exact integer arithmetic.

Precision hazard: inputs with more than 10 fractional digits, or with more
significant digits than a double can hold, are silently rounded. Callers are
expected to keep inputs within that bound; nothing is raised.
"""

from __future__ import annotations

from decimal import Context, Decimal
from typing import Union

Number = Union[int, float, Decimal, str]

WAD = 10 ** 18
RAY = 10 ** 27
RAD = 10 ** 45

PRESCALE_DIGITS = 10
_PRESCALE = 10 ** PRESCALE_DIGITS

# Wide enough to hold any RAD exactly when decoding.
_DECODE_CONTEXT = Context(prec=96)


def _prescale(value: Number) -> int:
    """Scale a non-negative decimal by 10^10 and round to an integer.

    The multiplication is done in floating point, so at most 10 fractional
    digits survive. This is the single precision-unsafe boundary of the module.
    """
    scaled = float(value) * _PRESCALE
    if scaled < 0:
        raise ValueError(f"Fixed-point parameters must be non-negative, got {value!r}")
    return int(round(scaled))


def to_ray(value: Number) -> int:
    """Encode a decimal as a RAY (27 fractional digits)."""
    return _prescale(value) * 10 ** (27 - PRESCALE_DIGITS)


def to_rad(value: Number) -> int:
    """Encode a decimal as a RAD (45 fractional digits)."""
    return _prescale(value) * 10 ** (45 - PRESCALE_DIGITS)


def sub(x: int, y: int) -> int:
    """Arbitrary-precision subtraction of two encoded parameters."""
    return int(x) - int(y)


def from_ray(value: int) -> Decimal:
    """Decode a RAY back to a Decimal (exact)."""
    return Decimal(int(value)).scaleb(-27, context=_DECODE_CONTEXT)


def from_rad(value: int) -> Decimal:
    """Decode a RAD back to a Decimal (exact)."""
    return Decimal(int(value)).scaleb(-45, context=_DECODE_CONTEXT)
