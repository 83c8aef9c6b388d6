"""
Number formatting for RAPID literals.

RAPID accepts plain decimal literals; generated code keeps them short by
dropping trailing zeros ("0.##" style) so that equal values always render
identically.
"""

from typing import Iterable

UNSET_LITERAL = "9E9"


def format_number(value: float, decimals: int = 2) -> str:
    """
    Format a number with at most ``decimals`` fractional digits.

    Trailing zeros and a dangling decimal point are removed and negative
    zero renders as ``0``.

    Example:
        >>> format_number(12.5)
        '12.5'
        >>> format_number(-0.0001, 3)
        '0'
    """
    text = f"{value:.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def format_values(values: Iterable[float], decimals: int = 2) -> str:
    """Comma separated list of formatted numbers."""
    return ", ".join(format_number(value, decimals) for value in values)


def format_bool(value: bool) -> str:
    return "TRUE" if value else "FALSE"
