"""Tests for reconciliation checks between aggregation layers."""

import pytest

from abc_core.aggregate.dashboard import compute_period_aggregate
from abc_core.aggregate.grouping import GroupedBreakdown, MonthTotal, group_top_n
from abc_core.exceptions import DataQualityError
from abc_core.qa import ReconciliationResult, check_completeness, check_reconciliation
from abc_core.tables import TableKind


@pytest.fixture
def profit_rows(make_row):
    customers = [("C1", 100), ("C2", -30), ("C3", 12.5), ("C4", 7), ("", 3)]
    return {
        202401: [make_row(TableKind.CUSTOMER_PROFIT, 202401, CustomerID=c, CustomerProfit=v) for c, v in customers],
        202402: [make_row(TableKind.CUSTOMER_PROFIT, 202402, CustomerID="C1", CustomerProfit=-8)],
    }


def _breakdown(rows_by_period, window, top_n=2):
    return group_top_n(rows_by_period, window, lambda r: r["customerId"], "CustomerProfit", top_n)


def test_reconciliation_balanced(profit_rows) -> None:
    """Test that breakdown month totals match dashboard profitability."""
    window = [202401, 202402, 202403]
    breakdown = _breakdown(profit_rows, window)
    aggregates = [compute_period_aggregate(p, rows) for p, rows in profit_rows.items()]

    result = check_reconciliation(breakdown, aggregates)
    assert isinstance(result, ReconciliationResult)
    assert result.ok
    assert result.mismatches is None
    assert result.summary["periods_checked"] == 3


def test_reconciliation_mismatch() -> None:
    """Test that a period out of balance is reported and optionally raised."""
    breakdown = GroupedBreakdown(window=[202401], rows=[], month_totals=[MonthTotal(202401, 10.0)])
    aggregates = [compute_period_aggregate(202401, [{"customerId": "C1", "CustomerProfit": 12}])]

    result = check_reconciliation(breakdown, aggregates)
    assert not result.ok
    assert result.summary["mismatch_count"] == 1
    assert result.mismatches.iloc[0]["difference"] == pytest.approx(-2.0)

    with pytest.raises(DataQualityError, match="202401"):
        check_reconciliation(breakdown, aggregates, raise_on_error=True)


def test_completeness_for_every_top_n(profit_rows) -> None:
    """Test that folding into Others never loses value."""
    window = [202401, 202402]
    for top_n in (1, 2, 5):
        result = check_completeness(_breakdown(profit_rows, window, top_n), profit_rows, "CustomerProfit")
        assert result.ok
        assert result.summary["rows_total"] == pytest.approx(84.5)


def test_completeness_detects_lost_rows(profit_rows) -> None:
    """Test that a breakdown missing rows fails the check."""
    partial = {202401: profit_rows[202401][:2], 202402: profit_rows[202402]}
    breakdown = _breakdown(partial, [202401, 202402])
    with pytest.raises(DataQualityError):
        check_completeness(breakdown, profit_rows, "CustomerProfit", raise_on_error=True)
