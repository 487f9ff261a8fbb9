"""Second-level drill-down of one sales activity center.

Selecting a center on the center breakdown scopes CustomerProductProfit rows
to that center and regroups them by product or by customer over the same
period window.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Optional

from abc_core.aggregate.grouping import GroupedBreakdown, group_top_n, read_window
from abc_core.config import EngineConfig
from abc_core.exceptions import DataUnavailableError
from abc_core.normalize.extractors import cell_text, extract_code, normalize_activity_center
from abc_core.normalize.periods import format_period
from abc_core.storage.base import StorageGateway
from abc_core.tables import Row, TableKind

logger = logging.getLogger(__name__)

DRILL_DIMENSIONS = ("product", "customer")


def center_of(row: Row) -> str:
    """Activity-center key of a CustomerProductProfit row."""
    if "activityCenterKey" in row:
        return str(row["activityCenterKey"] or "")
    return normalize_activity_center(row.get("SalesActivityCenter"))


def _product_key(row: Row) -> str:
    return extract_code(row.get("Product"))


def _customer_key(row: Row) -> str:
    return str(row.get("customerId") or "")


def _label(column: str):
    def label(row: Row) -> str:
        return cell_text(row.get(column)).strip()

    return label


_DRILL_KEYS = {
    "product": (_product_key, _label("Product")),
    "customer": (_customer_key, _label("Customer")),
}


def filter_center(rows_by_period: Mapping[int, Sequence[Row]], center_key: str) -> dict[int, list[Row]]:
    """Keep only rows whose activity-center key equals ``center_key`` exactly."""
    return {
        period: [row for row in rows if center_of(row) == center_key]
        for period, rows in rows_by_period.items()
    }


def drill_center(
    rows_by_period: Mapping[int, Sequence[Row]],
    window: Sequence[int],
    center_key: str,
    by: str = "product",
    config: Optional[EngineConfig] = None,
) -> GroupedBreakdown:
    """Group one center's CustomerProductProfit rows by product or customer.

    Args:
        rows_by_period: Period -> CustomerProductProfit rows.
        window: Periods to report.
        center_key: Activity-center key from the center breakdown.
        by: ``"product"`` or ``"customer"``.
        config: Engine configuration (top_n and labels).

    Returns:
        GroupedBreakdown of NetProfit for the selected center.

    Raises:
        ValueError: If ``by`` is not a drill dimension.
        DataUnavailableError: If the center has no rows in the window.
    """
    if by not in _DRILL_KEYS:
        raise ValueError(f"Invalid drill dimension '{by}'. Must be one of: {', '.join(DRILL_DIMENSIONS)}.")
    config = config or EngineConfig()

    scoped = filter_center({p: rows_by_period.get(p, []) for p in window}, center_key)
    if not any(scoped.values()):
        periods = ", ".join(format_period(p) for p in window)
        raise DataUnavailableError(f"No data for activity center '{center_key}' in {periods or 'no periods'}")

    key, label = _DRILL_KEYS[by]
    logger.debug("Drilling center %s by %s over %s", center_key, by, list(window))
    return group_top_n(
        scoped,
        window,
        key=key,
        value_column="NetProfit",
        top_n=config.top_n,
        label=label,
        others_label=config.others_label,
        unknown_label=config.unknown_label,
    )


async def load_center_drilldown(
    storage: StorageGateway,
    center_key: str,
    window: Sequence[int],
    by: str = "product",
    config: Optional[EngineConfig] = None,
) -> GroupedBreakdown:
    """Read the window's CustomerProductProfit rows and drill into one center.

    Raises:
        StorageError: If any period of the window cannot be read.
        DataUnavailableError: If the center has no rows in the window.
    """
    rows_by_period = await read_window(storage, TableKind.CUSTOMER_PRODUCT_PROFIT, window)
    return drill_center(rows_by_period, window, center_key, by=by, config=config)
