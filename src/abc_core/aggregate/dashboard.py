"""Dashboard: per-period scalar aggregates.

One aggregate per period, computed from that period's CustomerProfitResult
rows. Revenue falls back to the income statement when the price column sums
to zero. Aggregates are recomputed on every load and never persisted.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from abc_core.config import EngineConfig
from abc_core.exceptions import StorageError
from abc_core.normalize.extractors import to_number, to_number_or_null
from abc_core.normalize.periods import UNKNOWN_PERIOD
from abc_core.storage.base import StorageGateway
from abc_core.tables import Row, TableKind

logger = logging.getLogger(__name__)

TREND_METRICS = ("customer_count", "total_profitability", "total_service_cost", "avg_profit_ratio")


@dataclass(frozen=True)
class PeriodAggregate:
    """Scalar totals of one period.

    Attributes:
        period_no: Reporting period.
        total_profitability: Sum of CustomerProfit.
        total_revenue: Sum of Price, or of IncomeStatment Amount when that is 0.
        total_service_cost: Sum of ServiceCost.
        customer_count: Distinct non-empty customer ids.
        avg_profit_ratio: Mean of the non-null CustomerProfitRatio values, 0 when none.
    """

    period_no: int
    total_profitability: float
    total_revenue: float
    total_service_cost: float
    customer_count: int
    avg_profit_ratio: float = 0.0

    def metric(self, name: str) -> float:
        if name not in TREND_METRICS:
            raise ValueError(f"Invalid metric '{name}'. Must be one of: {', '.join(TREND_METRICS)}.")
        return float(getattr(self, name))


def column_sum(rows: Sequence[Row], column: str) -> float:
    """Sum a numeric column over rows; missing or non-numeric cells count as 0."""
    if not rows:
        return 0.0
    return float(pd.Series([to_number(row.get(column)) for row in rows], dtype=float).sum())


def compute_period_aggregate(
    period_no: int,
    profit_rows: Sequence[Row],
    income_rows: Optional[Sequence[Row]] = None,
) -> Optional[PeriodAggregate]:
    """Aggregate one period's CustomerProfitResult rows.

    Args:
        period_no: Period the rows belong to.
        profit_rows: Canonical CustomerProfitResult rows of the period.
        income_rows: Canonical IncomeStatment rows, used for the revenue
            fallback.

    Returns:
        PeriodAggregate, or None when there are no profit rows (the period is
        absent from the dashboard, not zero).
    """
    if not profit_rows:
        return None

    revenue = column_sum(profit_rows, "Price")
    if revenue == 0:
        revenue = column_sum(income_rows or [], "Amount")

    customers = {str(row.get("customerId") or "") for row in profit_rows}
    customers.discard("")

    # blank ratio cells mean "no ratio", not 0
    cells = [row.get("CustomerProfitRatio") for row in profit_rows]
    ratios = [to_number_or_null(c) for c in cells if not (c is None or (isinstance(c, str) and not c.strip()))]
    ratios = [r for r in ratios if r is not None]
    avg_ratio = sum(ratios) / len(ratios) if ratios else 0.0

    return PeriodAggregate(
        period_no=int(period_no),
        total_profitability=column_sum(profit_rows, "CustomerProfit"),
        total_revenue=revenue,
        total_service_cost=column_sum(profit_rows, "ServiceCost"),
        customer_count=len(customers),
        avg_profit_ratio=avg_ratio,
    )


def rows_of_period(rows: Sequence[Row], period_no: int) -> list[Row]:
    """Keep only the rows whose ``periodNo`` is ``period_no``."""
    return [row for row in rows if int(row.get("periodNo", UNKNOWN_PERIOD) or 0) == int(period_no)]


async def load_period_aggregate(storage: StorageGateway, period_no: int) -> Optional[PeriodAggregate]:
    """Read one period's profit and income rows concurrently and aggregate them."""
    profit_rows, income_rows = await asyncio.gather(
        storage.get_table(period_no, TableKind.CUSTOMER_PROFIT),
        storage.get_table(period_no, TableKind.INCOME_STATEMENT),
    )
    return compute_period_aggregate(
        period_no,
        rows_of_period(profit_rows, period_no),
        rows_of_period(income_rows, period_no),
    )


async def load_dashboard(
    storage: StorageGateway,
    config: Optional[EngineConfig] = None,
) -> list[PeriodAggregate]:
    """Aggregates for every known period, ascending.

    Periods are read concurrently. A period whose read fails is skipped and
    logged; it never aborts the other periods.
    """
    config = config or EngineConfig()
    period_nos = await storage.list_period_nos()
    if not config.include_unknown_period:
        period_nos = [p for p in period_nos if p != UNKNOWN_PERIOD]

    async def _one(period_no: int) -> Optional[PeriodAggregate]:
        try:
            return await load_period_aggregate(storage, period_no)
        except StorageError as e:
            logger.warning("Skipping period %s on dashboard: %s", period_no, e)
            return None

    results = await asyncio.gather(*(_one(p) for p in period_nos))
    aggregates = [agg for agg in results if agg is not None]
    logger.debug("Dashboard: %d of %d periods have profit rows", len(aggregates), len(period_nos))
    return aggregates
