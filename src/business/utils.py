"""
Value Conversion Utilities for Derived Field Validation

Length and pattern constraints are checked against the textual form of a property
value regardless of its original type. to_text produces that form: booleans and
None use their lowercase literal spellings, integral floats drop the trailing
``.0``, other floats use plain decimals between 1e-6 and 1e21 and sequences are
joined with commas, so ``1.0`` has length 1, ``0.00001`` has length 7 and
``[1, 2]`` renders as ``1,2``.
"""

import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any


def to_text(value: Any) -> str:
    """
    Convert a property value to the textual form used by length and pattern checks.

    Args:
        value: Any property value taken from a derived field

    Returns:
        Textual representation of the value

    Example:
        to_text("ABCDE1234F")  # "ABCDE1234F"
        to_text(123456)        # "123456"
        to_text(True)          # "true"
        to_text(10.0)          # "10"
        to_text(None)          # "null"
    """
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return _float_text(value)
    if isinstance(value, (list, tuple)):
        # None items render as empty strings inside a joined sequence
        return ",".join("" if item is None else to_text(item) for item in value)
    if isinstance(value, Mapping):
        return "[object Object]"
    return str(value)


def _float_text(value: float) -> str:
    """Shortest round-trip digits, in exponent form only below 1e-6 or from 1e21 up."""
    text = repr(value)
    if 'e' not in text:
        return text
    mantissa, exponent = text.split('e')
    power = int(exponent)
    if -7 < power < 21:
        return format(Decimal(text), 'f')
    return f"{mantissa}e{'+' if power > 0 else '-'}{abs(power)}"


__all__ = ['to_text']
