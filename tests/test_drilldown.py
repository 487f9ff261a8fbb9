"""Tests for the activity-center drill-down and the single-period detail drills."""

import asyncio

import pytest

from abc_core.aggregate.details import (
    activity_driver_detail,
    activity_model_detail,
    customer_overview,
    customer_products,
    load_service_cost_by_center,
    resource_detail,
    service_cost_by_center,
)
from abc_core.aggregate.drilldown import drill_center, filter_center, load_center_drilldown
from abc_core.config import EngineConfig
from abc_core.exceptions import DataUnavailableError
from abc_core.normalize import normalize_all, partition_by_period
from abc_core.tables import TableKind


def _cpp(make_row, period, customer, center, product, net):
    return make_row(
        TableKind.CUSTOMER_PRODUCT_PROFIT,
        period,
        Customer=customer,
        SalesActivityCenter=center,
        Product=product,
        NetProfit=net,
    )


@pytest.fixture
def rows_by_period(make_row):
    return {
        202401: [
            _cpp(make_row, 202401, "C1:Alpha", "AC10:Sales", "P1:Widget", 80),
            _cpp(make_row, 202401, "C2:Beta", "AC10:Sales", "P2:Gadget", 120),
            _cpp(make_row, 202401, "C2:Beta", "AC20:Logistics", "P1:Widget", 100),
        ],
        202402: [
            _cpp(make_row, 202402, "C1:Alpha", " AC10:Sales ", "P1:Widget", 20),
            _cpp(make_row, 202402, "C3:Gamma", "AC10:Sales Extra", "P3:Gizmo", 999),
        ],
    }


def test_filter_center_exact_match(rows_by_period) -> None:
    """Test that only rows of exactly the selected center are kept."""
    scoped = filter_center(rows_by_period, "AC10:Sales")
    assert len(scoped[202401]) == 2
    assert len(scoped[202402]) == 1
    assert scoped[202402][0]["customerId"] == "C1"


def test_drill_by_product(rows_by_period) -> None:
    """Test grouping one center's rows by product over the window."""
    out = drill_center(rows_by_period, [202401, 202402], "AC10:Sales", by="product")
    assert [(r.data_key, r.group) for r in out.rows] == [("P2", "P2:Gadget"), ("P1", "P1:Widget")]
    assert out.rows[1].value_for(202401) == 80.0
    assert out.rows[1].value_for(202402) == 20.0
    assert [mt.total for mt in out.month_totals] == [200.0, 20.0]


def test_drill_by_customer(rows_by_period) -> None:
    """Test grouping one center's rows by customer."""
    out = drill_center(rows_by_period, [202401, 202402], "AC10:Sales", by="customer")
    assert [(r.data_key, r.total) for r in out.rows] == [("C2", 120.0), ("C1", 100.0)]


def test_drill_respects_top_n(rows_by_period) -> None:
    """Test that the drill-down folds groups beyond top_n into Others."""
    out = drill_center(rows_by_period, [202401, 202402], "AC10:Sales", by="product", config=EngineConfig(top_n=1))
    assert [r.group for r in out.rows] == ["P2:Gadget", "Others"]
    assert out.month_total(202401) == 200.0


def test_drill_no_data(rows_by_period) -> None:
    """Test that an unknown center reports no data instead of an empty chart."""
    with pytest.raises(DataUnavailableError, match="AC99"):
        drill_center(rows_by_period, [202401, 202402], "AC99")


def test_drill_invalid_dimension(rows_by_period) -> None:
    """Test that only product and customer drills exist."""
    with pytest.raises(ValueError, match="Invalid drill dimension"):
        drill_center(rows_by_period, [202401], "AC10:Sales", by="region")


def test_load_center_drilldown(storage, seeded, rows_by_period) -> None:
    """Test the drill-down read from storage."""
    seeded(storage, {p: {TableKind.CUSTOMER_PRODUCT_PROFIT: rows} for p, rows in rows_by_period.items()})
    out = asyncio.run(load_center_drilldown(storage, "AC20:Logistics", [202401, 202402], by="customer"))
    assert [(r.data_key, r.total) for r in out.rows] == [("C2", 100.0)]


class TestDetails:
    @pytest.fixture
    def tables(self, workbook):
        return partition_by_period(normalize_all(workbook(202401)))[202401]

    def test_customer_overview(self, tables) -> None:
        """Test the customer profit rows of one period, blank ratios as None."""
        rows = customer_overview(tables[TableKind.CUSTOMER_PROFIT], 202401)
        assert [r["customerId"] for r in rows] == ["C1", "C2"]
        assert [r["CustomerProfitRatio"] for r in rows] == [0.1, None]
        assert customer_overview(tables[TableKind.CUSTOMER_PROFIT], 202402) == []

    def test_customer_products(self, tables) -> None:
        """Test the products bought by one customer."""
        rows = customer_products(tables[TableKind.CUSTOMER_PRODUCT_PROFIT], 202401, "C2")
        assert [r["Product"] for r in rows] == ["P2:Gadget", "P1:Widget"]
        assert customer_products(tables[TableKind.CUSTOMER_PRODUCT_PROFIT], 202402, "C2") == []

    def test_service_cost_by_center(self, tables) -> None:
        """Test that service cost sums and counts per activity center."""
        costs = service_cost_by_center(tables[TableKind.CUSTOMER_SERVICE_COST], 202401, "C1")
        assert [(c.activity_center_key, c.total_amount, c.count) for c in costs] == [
            ("AC10:Sales Support", 150.0, 2),
            ("AC20:Logistics", 50.0, 1),
        ]

    def test_activity_driver_detail(self, tables) -> None:
        """Test the driver rows of one customer at one center."""
        rows = activity_driver_detail(tables[TableKind.ACTIVITY_DRIVER], 202401, "C1", "AC10:Sales Support")
        assert len(rows) == 1
        assert rows[0]["activityCodeKey"] == "SD001"
        assert activity_driver_detail(tables[TableKind.ACTIVITY_DRIVER], 202401, "C2", "AC10:Sales Support") == []

    def test_activity_model_detail(self, tables) -> None:
        """Test the model rows of one activity at one center."""
        rows = activity_model_detail(tables[TableKind.ACTIVITY_MODEL], 202401, "AC10:Sales Support", "SD001")
        assert [r["Amount"] for r in rows] == [800.0]

    def test_resource_detail(self, tables) -> None:
        """Test the resources feeding one center."""
        rows = resource_detail(tables[TableKind.RESOURCE], 202401, "AC20:Logistics")
        assert [r["Amount"] for r in rows] == [500.0]

    def test_required_keys(self, tables) -> None:
        """Test that a drill without its key is rejected."""
        with pytest.raises(ValueError, match="customer_id"):
            customer_products(tables[TableKind.CUSTOMER_PRODUCT_PROFIT], 202401, "")

    def test_load_service_cost_by_center(self, storage, seeded, tables) -> None:
        """Test the service cost drill read from storage."""
        seeded(storage, {202401: tables})
        costs = asyncio.run(load_service_cost_by_center(storage, 202401, "C1"))
        assert sum(c.total_amount for c in costs) == 200.0
