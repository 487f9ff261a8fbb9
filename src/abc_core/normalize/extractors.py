"""Field extractors for raw ABC spreadsheet cells.

Exports encode several join keys as composite ``"code:description"`` strings
and store amounts as a mix of numbers and text. The helpers in this module
turn single cell values into canonical keys and numbers. Every function is
total: malformed input is coerced to an empty key, a default or None, never
an exception.

Key utilities:
- Key extraction: customer ids, activity/product codes, business-unit codes
- Activity-center keys: trimmed only, the full label is the key
- Number parsing: spreadsheet-number semantics with a default or None

Examples:
    >>> from abc_core.normalize.extractors import extract_id, to_number
    >>> extract_id("1404:ErZh")
    '1404'
    >>> extract_code("SD001:Therapy Meeting")
    'SD001'
    >>> to_number("12.5")
    12.5
    >>> to_number("n/a")
    0
"""

from __future__ import annotations

import math
import numbers
from decimal import Decimal
from typing import Any, Optional, Union

import numpy as np
import pandas as pd

_INFINITY = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}

Number = Union[int, float]


def _is_missing(value: Any) -> bool:
    """True for None, NaN-like scalars and the empty string."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def cell_text(value: Any) -> str:
    """Render a cell value as text the way the export shows it.

    Integral floats lose their trailing ``.0`` so that a customer id read as
    ``1404.0`` joins with the text ``"1404"``.

    Examples:
        >>> cell_text(1404.0)
        '1404'
        >>> cell_text(None)
        ''
    """
    if _is_missing(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)


def _before_colon(value: Any) -> str:
    text = cell_text(value).strip()
    if ":" in text:
        return text.split(":", 1)[0]
    return text


def extract_id(value: Any) -> str:
    """Extract a customer identifier from a composite cell.

    Args:
        value: Raw cell, e.g. ``"1404:ErZh"``, ``1404`` or None.

    Returns:
        The trimmed text before the first ``:``, the whole trimmed text when
        there is no ``:``, or ``""`` for empty input.

    Examples:
        >>> extract_id("1404:ErZh")
        '1404'
        >>> extract_id("1404")
        '1404'
        >>> extract_id(None)
        ''
    """
    return _before_colon(value)


def extract_code(value: Any) -> str:
    """Extract an activity or product code, e.g. ``"SD001:Therapy Meeting"`` -> ``"SD001"``."""
    return _before_colon(value)


def extract_bu_code(value: Any) -> str:
    """Extract a business-unit code, e.g. ``"LUNA_AnCor:LUNA"`` -> ``"LUNA_AnCor"``."""
    return _before_colon(value)


def normalize_activity_center(value: Any) -> str:
    """Trim an activity-center label without splitting it.

    The full label is both the grouping key and the display text, so a
    ``:`` inside it is kept.

    Examples:
        >>> normalize_activity_center("  AC10:Sales Support ")
        'AC10:Sales Support'
    """
    return cell_text(value).strip()


def parse_number(value: Any) -> float:
    """Parse a cell the way spreadsheet numbers are read, NaN when not numeric.

    Handles:
    - None and non-numeric text: NaN
    - Empty or whitespace-only text: 0
    - Booleans: 1 / 0
    - Decimal, int, float and numpy scalars: their float value
    - Text: surrounding whitespace stripped, exponent and ``0x`` hex forms
      accepted, ``Infinity`` spelled out; ``nan``, ``inf`` and digit
      underscores are not numbers

    Examples:
        >>> parse_number(" 1e3 ")
        1000.0
        >>> parse_number("")
        0.0
        >>> parse_number("abc")
        nan
    """
    if value is None:
        return math.nan
    if isinstance(value, (bool, np.bool_)):
        return 1.0 if value else 0.0
    if isinstance(value, (numbers.Number, Decimal)):
        try:
            return float(value)
        except (TypeError, ValueError, OverflowError):
            return math.nan
    if not isinstance(value, str):
        return math.nan

    s = value.strip()
    if not s:
        return 0.0
    if s in _INFINITY:
        return _INFINITY[s]
    if "_" in s:
        return math.nan
    if s[:2].lower() in ("0x", "0o", "0b"):
        try:
            return float(int(s, 0))
        except ValueError:
            return math.nan
    try:
        out = float(s)
    except ValueError:
        return math.nan
    if np.isnan(out) or np.isinf(out):
        # Python-only spellings such as "nan" or "inf"
        return math.nan
    return out


def to_number(value: Any, default: Number = 0) -> Number:
    """Parse a numeric cell, returning ``default`` when it is not a number.

    Examples:
        >>> to_number("1,234")
        0
        >>> to_number("x", default=-1)
        -1
    """
    out = parse_number(value)
    if np.isnan(out):
        return default
    return out


def to_number_or_null(value: Any) -> Optional[float]:
    """Parse a ratio cell, returning None when it is not a number.

    None means "no ratio" and is kept distinct from a ratio of zero.
    """
    out = parse_number(value)
    if np.isnan(out):
        return None
    return out
