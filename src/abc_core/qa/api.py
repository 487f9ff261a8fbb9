"""Reconciliation checks for grouped breakdowns.

Folding groups into Others must never lose value: per period, the month
totals of a breakdown equal the raw sum of the grouped column, and for the
customer breakdown they also equal the dashboard's total profitability.
These checks run in memory on already loaded data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from abc_core.aggregate.dashboard import PeriodAggregate, column_sum
from abc_core.aggregate.grouping import GroupedBreakdown
from abc_core.exceptions import DataQualityError
from abc_core.tables import Row

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-6

MISMATCH_COLUMNS = ["period", "expected", "actual", "difference"]


@dataclass
class ReconciliationResult:
    """Result of a reconciliation check.

    Attributes:
        summary: Dictionary with counts and flags.
        mismatches: DataFrame with one row per period whose totals differ
            (period, expected, actual, difference), or None if none found.
    """

    summary: dict
    mismatches: Optional[pd.DataFrame]

    @property
    def ok(self) -> bool:
        return not self.summary.get("has_mismatches", False)


def _compare(
    check: str,
    expected: Mapping[int, float],
    actual: Mapping[int, float],
    tolerance: float,
    raise_on_error: bool,
) -> ReconciliationResult:
    records = []
    for period in expected:
        diff = actual.get(period, 0.0) - expected[period]
        if abs(diff) > tolerance:
            records.append((period, expected[period], actual.get(period, 0.0), diff))

    mismatches = pd.DataFrame.from_records(records, columns=MISMATCH_COLUMNS) if records else None
    summary = {
        "check": check,
        "periods_checked": len(expected),
        "mismatch_count": len(records),
        "has_mismatches": bool(records),
        "max_abs_difference": max((abs(r[3]) for r in records), default=0.0),
        "tolerance": tolerance,
    }

    if records:
        logger.warning("%s: %d period(s) out of balance", check, len(records))
        if raise_on_error:
            detail = ", ".join(f"{p}: expected {e}, got {a}" for p, e, a, _ in records)
            raise DataQualityError(f"{check} failed for {detail}")
    else:
        logger.info("%s: %d period(s) balanced", check, len(expected))
    return ReconciliationResult(summary=summary, mismatches=mismatches)


def check_reconciliation(
    breakdown: GroupedBreakdown,
    aggregates: Iterable[PeriodAggregate],
    tolerance: float = DEFAULT_TOLERANCE,
    raise_on_error: bool = False,
) -> ReconciliationResult:
    """Compare customer-breakdown month totals with dashboard profitability.

    A window period without an aggregate (no profit rows) is expected to
    total 0.

    Args:
        breakdown: Customer breakdown over a window.
        aggregates: Dashboard aggregates (any periods).
        tolerance: Largest absolute difference accepted.
        raise_on_error: Raise instead of returning mismatches.

    Returns:
        ReconciliationResult with per-period mismatches, if any.

    Raises:
        DataQualityError: If raise_on_error is True and a period differs.
    """
    by_period = {agg.period_no: agg.total_profitability for agg in aggregates}
    expected = {p: by_period.get(p, 0.0) for p in breakdown.window}
    actual = {mt.period: mt.total for mt in breakdown.month_totals}
    return _compare("reconciliation", expected, actual, tolerance, raise_on_error)


def check_completeness(
    breakdown: GroupedBreakdown,
    rows_by_period: Mapping[int, Sequence[Row]],
    value_column: str,
    tolerance: float = DEFAULT_TOLERANCE,
    raise_on_error: bool = False,
) -> ReconciliationResult:
    """Check that a breakdown kept the full value of the rows it grouped.

    Per window period, the month total must equal the raw sum of
    ``value_column`` over the source rows, and the row totals (Others
    included) must add up to the same grand total.

    Raises:
        DataQualityError: If raise_on_error is True and a period differs.
    """
    expected = {p: column_sum(rows_by_period.get(p, []), value_column) for p in breakdown.window}
    actual = {mt.period: mt.total for mt in breakdown.month_totals}
    result = _compare("completeness", expected, actual, tolerance, raise_on_error)

    rows_total = sum(row.total for row in breakdown.rows)
    grand_diff = rows_total - sum(expected.values())
    result.summary["rows_total"] = rows_total
    result.summary["grand_total_difference"] = grand_diff
    if abs(grand_diff) > tolerance * max(1, len(breakdown.rows)):
        result.summary["has_mismatches"] = True
        if raise_on_error:
            raise DataQualityError(f"completeness failed: row totals differ from raw total by {grand_diff}")
    return result
