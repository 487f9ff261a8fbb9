"""Top-N grouping over a window of periods.

Rows from several periods are grouped by a key, summed per period and
ranked by the sum of the absolute per-period values. The ``top_n`` largest
groups are kept as individual rows; every remaining group is folded into a
single signed Others row. Month totals are the column sums of the emitted
rows, so they always equal the raw total of the window.

Key utilities:
- GroupingSpec: which table, key, value and label a breakdown uses
- group_top_n: the pure grouping step
- load_breakdown: concurrent, all-or-nothing window read plus grouping
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from abc_core.config import EngineConfig
from abc_core.normalize.extractors import cell_text, extract_code, to_number
from abc_core.storage.base import StorageGateway
from abc_core.tables import Row, TableKind

logger = logging.getLogger(__name__)

KeyFn = Callable[[Row], str]


@dataclass(frozen=True)
class PeriodValue:
    period: int
    value: float


@dataclass
class GroupedRow:
    """One bar of a grouped chart.

    Attributes:
        group: Display label (the key itself when no label column is set).
        values: One value per window period, in window order.
        total: Sum of ``values``.
        data_key: Group key the row was built from, used for the next drill.
        is_others: True for the synthetic bucket of groups beyond top_n.
    """

    group: str
    values: list[PeriodValue]
    total: float
    data_key: Optional[str] = None
    is_others: bool = False

    def value_for(self, period: int) -> float:
        for pv in self.values:
            if pv.period == period:
                return pv.value
        return 0.0


@dataclass(frozen=True)
class MonthTotal:
    period: int
    total: float


@dataclass
class GroupedBreakdown:
    """Grouped rows plus the per-period totals of a window."""

    window: list[int]
    rows: list[GroupedRow] = field(default_factory=list)
    month_totals: list[MonthTotal] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def others(self) -> Optional[GroupedRow]:
        for row in self.rows:
            if row.is_others:
                return row
        return None

    def month_total(self, period: int) -> float:
        for mt in self.month_totals:
            if mt.period == period:
                return mt.total
        return 0.0

    def grand_total(self) -> float:
        return sum(mt.total for mt in self.month_totals)


@dataclass(frozen=True)
class GroupingSpec:
    """How one breakdown groups a table.

    Attributes:
        name: Short name used on the command line.
        table: Table kind the rows are read from.
        key: Row -> group key.
        value_column: Numeric column summed per group and period.
        label_column: Column shown instead of the key, if any.
    """

    name: str
    table: TableKind
    key: KeyFn
    value_column: str
    label_column: Optional[str] = None

    def label(self, row: Row) -> str:
        if self.label_column is None:
            return ""
        return cell_text(row.get(self.label_column)).strip()


def _customer_key(row: Row) -> str:
    return str(row.get("customerId") or "")


def _center_key(row: Row) -> str:
    return str(row.get("activityCenterKey") or "")


def _product_key(row: Row) -> str:
    return extract_code(row.get("ProductID"))


BY_CUSTOMER = GroupingSpec(
    name="customer",
    table=TableKind.CUSTOMER_PROFIT,
    key=_customer_key,
    value_column="CustomerProfit",
    label_column="Customer",
)
BY_PRODUCT = GroupingSpec(
    name="product",
    table=TableKind.PRODUCT_PROFIT,
    key=_product_key,
    value_column="ProductProfit",
    label_column="Product",
)
BY_SALES_ACTIVITY_CENTER = GroupingSpec(
    name="center",
    table=TableKind.CUSTOMER_PRODUCT_PROFIT,
    key=_center_key,
    value_column="NetProfit",
)

BREAKDOWNS: dict[str, GroupingSpec] = {
    spec.name: spec for spec in (BY_CUSTOMER, BY_PRODUCT, BY_SALES_ACTIVITY_CENTER)
}


def get_breakdown_spec(name: str) -> GroupingSpec:
    """Look up a breakdown by name.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return BREAKDOWNS[name]
    except KeyError:
        raise ValueError(f"Invalid breakdown '{name}'. Must be one of: {', '.join(BREAKDOWNS)}.") from None


def group_top_n(
    rows_by_period: Mapping[int, Sequence[Row]],
    window: Sequence[int],
    key: KeyFn,
    value_column: str,
    top_n: int,
    label: Optional[KeyFn] = None,
    others_label: str = "Others",
    unknown_label: str = "(Unknown)",
) -> GroupedBreakdown:
    """Group rows of a period window into top-N rows plus Others.

    Args:
        rows_by_period: Period -> canonical rows of that period.
        window: Periods to report, in display order.
        key: Row -> group key; an empty key groups under ``unknown_label``.
        value_column: Column summed per group and period (non-numeric is 0).
        top_n: Number of individual groups kept.
        label: Row -> display label; the first non-empty label of a key wins.
        others_label: Label of the folded bucket.
        unknown_label: Key used for rows with an empty key.

    Returns:
        GroupedBreakdown whose rows are ordered by descending absolute
        magnitude, ties broken by ascending key, with Others last. The Others
        row only exists when more than ``top_n`` groups exist.

    Examples:
        >>> rows = {202401: [{"customerId": "C1", "CustomerProfit": 100},
        ...                  {"customerId": "C2", "CustomerProfit": 200}]}
        >>> out = group_top_n(rows, [202401], lambda r: r["customerId"], "CustomerProfit", 1)
        >>> [(r.group, r.total) for r in out.rows]
        [('C2', 200.0), ('Others', 100.0)]
    """
    window = list(window)
    records = []
    labels: dict[str, str] = {}
    for period in window:
        for row in rows_by_period.get(period, ()):
            group = key(row) or unknown_label
            records.append((group, period, float(to_number(row.get(value_column)))))
            if label is not None and group not in labels:
                text = label(row)
                if text:
                    labels[group] = text

    if not records:
        return GroupedBreakdown(window=window, month_totals=[MonthTotal(p, 0.0) for p in window])

    df = pd.DataFrame.from_records(records, columns=["group", "period", "value"])
    pivot = (
        df.groupby(["group", "period"], sort=False)["value"]
        .sum()
        .unstack("period")
        .reindex(columns=window)
        .fillna(0.0)
    )

    magnitude = pivot.abs().sum(axis=1)
    ranking = pd.DataFrame({"group": pivot.index.astype(str), "magnitude": magnitude.to_numpy()})
    ranking = ranking.sort_values(["magnitude", "group"], ascending=[False, True], kind="mergesort")
    ordered = ranking["group"].tolist()
    top, rest = ordered[:top_n], ordered[top_n:]

    out_rows = [_grouped_row(labels.get(g, g), pivot.loc[g], window, data_key=g) for g in top]
    if rest:
        folded = pivot.loc[rest].sum(axis=0)
        out_rows.append(_grouped_row(others_label, folded, window, is_others=True))
        logger.debug("Folded %d group(s) into %s", len(rest), others_label)

    month_totals = [MonthTotal(p, float(sum(r.value_for(p) for r in out_rows))) for p in window]
    return GroupedBreakdown(window=window, rows=out_rows, month_totals=month_totals)


def _grouped_row(
    group: str,
    series: pd.Series,
    window: Sequence[int],
    data_key: Optional[str] = None,
    is_others: bool = False,
) -> GroupedRow:
    values = [PeriodValue(period=p, value=float(series[p])) for p in window]
    return GroupedRow(
        group=group,
        values=values,
        total=float(sum(pv.value for pv in values)),
        data_key=data_key,
        is_others=is_others,
    )


async def read_window(
    storage: StorageGateway,
    table: TableKind,
    window: Sequence[int],
) -> dict[int, list[Row]]:
    """Read one table for every period of a window concurrently.

    All-or-nothing: if any period's read fails the error propagates and no
    partial result is returned.
    """
    window = list(window)
    tables = await asyncio.gather(*(storage.get_table(p, table) for p in window))
    return {
        period: [row for row in rows if int(row.get("periodNo") or 0) == period]
        for period, rows in zip(window, tables)
    }


async def load_breakdown(
    storage: StorageGateway,
    spec: GroupingSpec,
    window: Sequence[int],
    config: Optional[EngineConfig] = None,
) -> GroupedBreakdown:
    """Read a window and group it with a breakdown spec.

    Raises:
        StorageError: If any period of the window cannot be read.
    """
    config = config or EngineConfig()
    rows_by_period = await read_window(storage, spec.table, window)
    return group_top_n(
        rows_by_period,
        window,
        key=spec.key,
        value_column=spec.value_column,
        top_n=config.top_n,
        label=spec.label if spec.label_column else None,
        others_label=config.others_label,
        unknown_label=config.unknown_label,
    )
