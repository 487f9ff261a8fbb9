"""Single-period detail drills.

The path from one customer down to the resources behind an activity:

    customer -> products (CustomerProductProfit)
             -> service cost by activity center (CustomerServiceCost)
             -> activity drivers (ActivityDriver)
             -> activity model (ActivityCenter+ActivityModel)
             -> resources (Resource)

Each step is an exact filter on the canonical join keys of one period.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import pandas as pd

from abc_core.aggregate.dashboard import rows_of_period
from abc_core.normalize.extractors import to_number
from abc_core.storage.base import StorageGateway
from abc_core.tables import Row, TableKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CenterCost:
    """Service cost of one customer at one activity center."""

    activity_center_key: str
    total_amount: float
    count: int


def _require(**keys: str) -> None:
    for name, value in keys.items():
        if not value:
            raise ValueError(f"{name} is required")


def _matching(rows: Sequence[Row], period_no: int, **keys: str) -> list[Row]:
    scoped = rows_of_period(rows, period_no)
    return [row for row in scoped if all(str(row.get(col) or "") == val for col, val in keys.items())]


def customer_overview(rows: Sequence[Row], period_no: int) -> list[Row]:
    """CustomerProfitResult rows of one period."""
    return rows_of_period(rows, period_no)


def customer_products(rows: Sequence[Row], period_no: int, customer_id: str) -> list[Row]:
    """CustomerProductProfit rows of one customer in one period."""
    _require(customer_id=customer_id)
    return _matching(rows, period_no, customerId=customer_id)


def service_cost_by_center(rows: Sequence[Row], period_no: int, customer_id: str) -> list[CenterCost]:
    """Sum one customer's CustomerServiceCost Amount per activity center.

    Centers keep the order of their first row.
    """
    _require(customer_id=customer_id)
    scoped = _matching(rows, period_no, customerId=customer_id)
    if not scoped:
        return []
    df = pd.DataFrame(
        {
            "center": [str(row.get("activityCenterKey") or "") for row in scoped],
            "amount": [float(to_number(row.get("Amount"))) for row in scoped],
        }
    )
    grouped = df.groupby("center", sort=False)["amount"].agg(["sum", "count"])
    return [
        CenterCost(activity_center_key=str(center), total_amount=float(r["sum"]), count=int(r["count"]))
        for center, r in grouped.iterrows()
    ]


def activity_driver_detail(
    rows: Sequence[Row],
    period_no: int,
    customer_id: str,
    center_key: str,
) -> list[Row]:
    """ActivityDriver rows of one customer at one activity center."""
    _require(customer_id=customer_id, center_key=center_key)
    return _matching(rows, period_no, activityCenterKey=center_key, customerId=customer_id)


def activity_model_detail(
    rows: Sequence[Row],
    period_no: int,
    center_key: str,
    activity_code: str,
) -> list[Row]:
    """ActivityCenter+ActivityModel rows of one activity at one center."""
    _require(center_key=center_key, activity_code=activity_code)
    return _matching(rows, period_no, activityCenterKey=center_key, activityCodeKey=activity_code)


def resource_detail(rows: Sequence[Row], period_no: int, center_key: str) -> list[Row]:
    """Resource rows feeding one activity center."""
    _require(center_key=center_key)
    return _matching(rows, period_no, activityCenterKey=center_key)


async def load_customer_products(storage: StorageGateway, period_no: int, customer_id: str) -> list[Row]:
    rows = await storage.get_table(period_no, TableKind.CUSTOMER_PRODUCT_PROFIT)
    return customer_products(rows, period_no, customer_id)


async def load_service_cost_by_center(
    storage: StorageGateway,
    period_no: int,
    customer_id: str,
) -> list[CenterCost]:
    rows = await storage.get_table(period_no, TableKind.CUSTOMER_SERVICE_COST)
    return service_cost_by_center(rows, period_no, customer_id)


async def load_activity_drivers(
    storage: StorageGateway,
    period_no: int,
    customer_id: str,
    center_key: str,
) -> list[Row]:
    rows = await storage.get_table(period_no, TableKind.ACTIVITY_DRIVER)
    return activity_driver_detail(rows, period_no, customer_id, center_key)


async def load_activity_model(
    storage: StorageGateway,
    period_no: int,
    center_key: str,
    activity_code: str,
) -> list[Row]:
    rows = await storage.get_table(period_no, TableKind.ACTIVITY_MODEL)
    return activity_model_detail(rows, period_no, center_key, activity_code)


async def load_resources(storage: StorageGateway, period_no: int, center_key: str) -> list[Row]:
    rows = await storage.get_table(period_no, TableKind.RESOURCE)
    out = resource_detail(rows, period_no, center_key)
    logger.debug("Resources for %s in %s: %d rows", center_key, period_no, len(out))
    return out
