"""Shared fixtures: raw sheet rows, seeded storage and a failing gateway."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from abc_core.exceptions import TransientReadError
from abc_core.normalize import normalize_row
from abc_core.storage import MemoryStorage, PeriodInfo
from abc_core.tables import TableKind


def raw_workbook(period: int = 202401) -> dict[str, list[dict[str, Any]]]:
    """Eight sheets of one small export, as the workbook decoder returns them."""
    year, month = divmod(period, 100)
    return {
        "Resource": [
            {"PeriodNo": period, " Company": "ACME", "Activity Center": "AC10:Sales Support", "Amount": "1000"},
            {"PeriodNo": period, " Company": "ACME", "Activity Center": "AC20:Logistics", "Amount": 500},
        ],
        "ActivityCenter+ActivityModel": [
            {
                "PeriodNo": period,
                "Activity Center- Level 2": "AC10:Sales Support",
                "Activity - Level 2": "SD001:Therapy Meeting",
                "Amount": 800,
            },
        ],
        "ActivityDriver": [
            {
                "PeriodNo": period,
                "Activity Center": "AC10:Sales Support",
                "Activity - Level 2": "SD001:Therapy Meeting",
                "ValueObject": "C1:Alpha Clinic",
                "ActCost": 300,
            },
        ],
        "CustomerServiceCost": [
            {"PeriodNo": period, "Customer": "C1:Alpha Clinic", "Activity Center": "AC10:Sales Support",
             "Code": "SD001:Therapy Meeting", "Amount": 120},
            {"PeriodNo": period, "Customer": "C1:Alpha Clinic", "Activity Center": "AC10:Sales Support",
             "Code": "SD002:Follow-up", "Amount": 30},
            {"PeriodNo": period, "Customer": "C1:Alpha Clinic", "Activity Center": "AC20:Logistics",
             "Code": "LG001:Delivery", "Amount": 50},
        ],
        "IncomeStatment": [
            {"Year": year, "Month": month, "Customer": "C1", "Amount": 900},
            {"Year": year, "Month": month, "Customer": "C2", "Amount": 600},
        ],
        "CustomerProfitResult": [
            {"PeriodNo": period, "CustomerID": "C1", "Customer": "Alpha Clinic", " Business Unit": "LUNA_AnCor:LUNA",
             "Price": 0, "ServiceCost": 200, "CustomerProfit": 100, "CustomerProfitRatio": 0.1},
            {"PeriodNo": period, "CustomerID": "C2", "Customer": "Beta Labs", " Business Unit": "LUNA_AnCor:LUNA",
             "Price": 0, "ServiceCost": 100, "CustomerProfit": 200, "CustomerProfitRatio": ""},
        ],
        "ProductProfitResult": [
            {"PeriodNo": period, "ProductID": "P1:Widget", "Product": "Widget", "ProductProfit": 150},
            {"PeriodNo": period, "ProductID": "P2:Gadget", "Product": "Gadget", "ProductProfit": 150},
        ],
        "CustomerProductProfit": [
            {"PeriodNo": period, "Customer": "C1:Alpha Clinic", "SalesActivityCenter": " AC10:Sales Support ",
             "Product": "P1:Widget", "Business Unit Code": "LUNA_AnCor:LUNA", "Price": 500, "NetProfit": 80},
            {"PeriodNo": period, "Customer": "C2:Beta Labs", "SalesActivityCenter": "AC10:Sales Support",
             "Product": "P2:Gadget", "Business Unit Code": "LUNA_AnCor:LUNA", "Price": 400, "NetProfit": 120},
            {"PeriodNo": period, "Customer": "C2:Beta Labs", "SalesActivityCenter": "AC20:Logistics",
             "Product": "P1:Widget", "Business Unit Code": "LUNA_AnCor:LUNA", "Price": 300, "NetProfit": 100},
        ],
    }


def canonical(kind: TableKind, period: int, **columns: Any) -> dict[str, Any]:
    """One canonical row built through the row normalizer."""
    return normalize_row({"PeriodNo": period, **columns}, kind)


class FlakyStorage(MemoryStorage):
    """MemoryStorage whose reads fail for selected (period, kind) pairs."""

    def __init__(self) -> None:
        super().__init__()
        self.failing: set[tuple[int, TableKind]] = set()

    async def get_table(self, period_no: int, kind: TableKind) -> list[dict[str, Any]]:
        if (int(period_no), TableKind.parse(kind)) in self.failing:
            raise TransientReadError(f"read rejected for {kind} in {period_no}")
        return await super().get_table(period_no, kind)


async def seed(storage: MemoryStorage, tables: dict[int, dict[TableKind, list[dict[str, Any]]]]) -> None:
    """Write canonical rows and a period record per period."""
    for period, by_kind in tables.items():
        for kind, rows in by_kind.items():
            await storage.put_table(period, kind, rows)
        await storage.put_period(PeriodInfo(period_no=period))


@pytest.fixture
def workbook() -> Callable[..., dict[str, list[dict[str, Any]]]]:
    return raw_workbook


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def flaky_storage() -> FlakyStorage:
    return FlakyStorage()


@pytest.fixture
def seeded() -> Callable[[MemoryStorage, dict], None]:
    """Synchronous seeding helper for tests that drive coroutines with asyncio.run."""

    def _seed(target: MemoryStorage, tables: dict) -> None:
        asyncio.run(seed(target, tables))

    return _seed


@pytest.fixture
def make_row() -> Callable[..., dict[str, Any]]:
    return canonical
