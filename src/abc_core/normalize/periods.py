"""Period resolution for uploaded workbooks.

Most sheets carry their own ``PeriodNo`` column. The income statement does
not: it carries ``Year`` and ``Month``. The first income statement row
supplies the fallback period for rows without a ``PeriodNo``, and a single
upload may span several periods, so the distinct set is enumerated from
every row.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional

from abc_core.normalize.extractors import parse_number
from abc_core.tables import TABLE_KINDS, TableKind, trim_keys

logger = logging.getLogger(__name__)

UNKNOWN_PERIOD = 0


@dataclass(frozen=True)
class YearMonth:
    """A (year, month) pair taken from the income statement."""

    year: int
    month: int

    @property
    def period_no(self) -> int:
        return self.year * 100 + self.month


def _year_month(row: Mapping[str, Any]) -> Optional[YearMonth]:
    row = trim_keys(row)
    raw_year, raw_month = row.get("Year"), row.get("Month")
    if any(isinstance(v, str) and not v.strip() for v in (raw_year, raw_month)):
        return None
    year = parse_number(raw_year)
    month = parse_number(raw_month)
    if math.isnan(year) or math.isnan(month) or math.isinf(year) or math.isinf(month):
        return None
    return YearMonth(int(year), int(month))


def resolve_fallback(parsed: Mapping[str, Sequence[Mapping[str, Any]]]) -> Optional[YearMonth]:
    """Fallback period taken from the first income statement row.

    Args:
        parsed: Sheet name -> raw rows for one upload.

    Returns:
        The first ``IncomeStatment`` row's (Year, Month) when both parse as
        numbers, otherwise None. Rows without their own ``PeriodNo`` then
        normalize to period 0.
    """
    income = parsed.get(TableKind.INCOME_STATEMENT.value) or []
    if not income or not income[0]:
        return None
    fallback = _year_month(income[0])
    if fallback is None:
        logger.warning("IncomeStatment first row has no numeric Year/Month; no fallback period")
    return fallback


def extract_period_nos(parsed: Mapping[str, Sequence[Mapping[str, Any]]]) -> list[int]:
    """Enumerate the distinct periods present in one upload.

    Reads each row's own ``PeriodNo`` across every kind except the income
    statement, plus ``Year * 100 + Month`` from every income statement row.
    Blank or non-numeric ``PeriodNo`` cells contribute nothing.

    Returns:
        Ascending, de-duplicated list of period numbers.

    Examples:
        >>> extract_period_nos({"CustomerProfitResult": [{"PeriodNo": 202402}, {"PeriodNo": "202401"}]})
        [202401, 202402]
    """
    found: set[int] = set()
    for kind in TABLE_KINDS:
        if kind is TableKind.INCOME_STATEMENT:
            continue
        for row in parsed.get(kind.value) or []:
            if not row:
                continue
            raw = trim_keys(row).get("PeriodNo")
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                continue
            value = parse_number(raw)
            if math.isfinite(value) and value.is_integer():
                found.add(int(value))

    for row in parsed.get(TableKind.INCOME_STATEMENT.value) or []:
        if not row:
            continue
        ym = _year_month(row)
        if ym is not None:
            found.add(ym.period_no)

    return sorted(found)


def format_period(period_no: int) -> str:
    """Label a period as MMYYYY, the way grouped charts show it.

    Examples:
        >>> format_period(202401)
        '012024'
        >>> format_period(0)
        'Unknown'
    """
    if period_no == UNKNOWN_PERIOD:
        return "Unknown"
    year, month = divmod(int(period_no), 100)
    return f"{month:02d}{year:04d}"
