"""
Fractional-inch measurement text.

Pieces are entered in shop notation ("24", "24.5", "24 1/2", "24-1/2", "3/8")
and printed back rounded to the nearest sixteenth.
"""
import math
from typing import Optional, Tuple

DEFAULT_DENOMINATOR = 16


def parse_inches(raw: str) -> Optional[float]:
    """Parse decimal or fractional inches. Returns None for unreadable text."""
    text = raw.strip()
    if not text:
        return None

    try:
        return float(text)
    except ValueError:
        pass

    negative = text.startswith("-")
    if negative:
        text = text[1:].lstrip()
    parts = text.replace("-", " ").split()

    value: Optional[float] = None
    if len(parts) == 2:
        fraction = _fraction_value(parts[1])
        try:
            whole = float(parts[0])
        except ValueError:
            return None
        if fraction is not None:
            value = whole + fraction
    elif len(parts) == 1:
        value = _fraction_value(parts[0])

    if value is None:
        return None
    return -value if negative else value


def _fraction_value(raw: str) -> Optional[float]:
    parts = raw.split("/")
    if len(parts) != 2:
        return None
    try:
        numerator = float(parts[0])
        denominator = float(parts[1])
    except ValueError:
        return None
    if denominator == 0:
        return None
    return numerator / denominator


def fractional_components(value: float, denominator: int = DEFAULT_DENOMINATOR) -> Tuple[int, int, int, bool]:
    """Split ``value`` into (whole, numerator, denominator, is_negative), reduced."""
    is_negative = value < 0
    magnitude = abs(value)
    whole = int(math.floor(magnitude))
    numerator = int(round((magnitude - whole) * denominator))
    if numerator == denominator:
        whole += 1
        numerator = 0
    if numerator == 0:
        return whole, 0, denominator, is_negative
    divisor = math.gcd(numerator, denominator)
    return whole, numerator // divisor, denominator // divisor, is_negative


def format_inches(value: float, denominator: int = DEFAULT_DENOMINATOR) -> str:
    whole, numerator, denom, is_negative = fractional_components(value, denominator)
    sign = "-" if is_negative and (whole or numerator) else ""
    if numerator == 0:
        return f"{sign}{whole}"
    if whole == 0:
        return f"{sign}{numerator}/{denom}"
    return f"{sign}{whole} {numerator}/{denom}"
