"""Coercion of untrusted nutrient values into numbers."""

import math
import re

_NUMERIC_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def coerce(value: object) -> float:
    """Convert an arbitrary value into a finite number, falling back to 0.

    Numbers pass through unchanged. Strings accept a comma as the decimal
    separator and are parsed by their leading numeric prefix, so ``"12,5"``
    becomes 12.5 and ``"165 kcal"`` becomes 165. Everything else is 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        return _parse_string(value)
    return 0


def coerce_nutrient(value: object) -> float:
    """Coerce a nutrient quantity, clamping negatives to 0."""
    return max(coerce(value), 0)


def _parse_string(value: str) -> float:
    match = _NUMERIC_PREFIX.match(value.replace(",", ".", 1))
    if match is None:
        return 0
    try:
        parsed = float(match.group(0))
    except ValueError:
        return 0
    return parsed if math.isfinite(parsed) else 0
