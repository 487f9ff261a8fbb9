"""Display formatting for amounts and ratios."""

from __future__ import annotations

import math
from typing import Optional

from abc_core.normalize.periods import format_period

__all__ = ["format_currency", "format_percent", "format_period"]


def format_currency(value: float) -> str:
    """Thousands separators and two decimals.

    Examples:
        >>> format_currency(1234567.5)
        '1,234,567.50'
        >>> format_currency(-50)
        '-50.00'
    """
    return f"{value:,.2f}"


def format_percent(value: Optional[float]) -> str:
    """A ratio as a percentage with two decimals, ``-`` when there is no ratio.

    Examples:
        >>> format_percent(0.1234)
        '12.34%'
        >>> format_percent(None)
        '-'
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "-"
    return f"{value * 100:.2f}%"
