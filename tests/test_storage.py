"""Tests for the memory and JSON-file storage gateways."""

import asyncio

import numpy as np
import pytest

from abc_core.config import DataPaths
from abc_core.exceptions import TransientReadError
from abc_core.normalize.dimensions import DimCustomer, Dimensions, FactCustomerProduct
from abc_core.storage import JsonFileStorage, MemoryStorage, PeriodInfo, UploadSession
from abc_core.tables import TableKind


@pytest.fixture(params=["memory", "json"])
def gateway(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    return JsonFileStorage(DataPaths.from_root(tmp_path / "data"))


def test_table_roundtrip_and_upsert(gateway) -> None:
    """Test that tables are written, read back and replaced on rewrite."""

    async def scenario():
        await gateway.put_table(202401, TableKind.RESOURCE, [{"Amount": 1.0, "periodNo": 202401}])
        first = await gateway.get_table(202401, TableKind.RESOURCE)
        await gateway.put_table(202401, TableKind.RESOURCE, [{"Amount": 2.0, "periodNo": 202401}])
        second = await gateway.get_table(202401, TableKind.RESOURCE)
        return first, second

    first, second = asyncio.run(scenario())
    assert first == [{"Amount": 1.0, "periodNo": 202401}]
    assert second == [{"Amount": 2.0, "periodNo": 202401}]


def test_missing_table_is_empty(gateway) -> None:
    """Test that reading an absent table yields an empty list."""
    assert asyncio.run(gateway.get_table(209901, TableKind.CUSTOMER_PROFIT)) == []


def test_periods_listed_ascending(gateway) -> None:
    """Test period records and the ascending period list."""

    async def scenario():
        for p in (202403, 202401, 202402):
            await gateway.put_period(PeriodInfo(period_no=p, sheet_status={"Resource": True}))
        return await gateway.list_period_nos(), await gateway.get_period(202402), await gateway.get_period(1)

    nos, info, missing = asyncio.run(scenario())
    assert nos == [202401, 202402, 202403]
    assert info.sheet_status == {"Resource": True}
    assert missing is None


def test_delete_period_removes_all_tables(gateway) -> None:
    """Test that deleting a period removes its record and every table."""

    async def scenario():
        for p in (202401, 202402):
            await gateway.put_table(p, TableKind.RESOURCE, [{"x": p}])
            await gateway.put_table(p, TableKind.CUSTOMER_PROFIT, [{"y": p}])
            await gateway.put_period(PeriodInfo(period_no=p))
        await gateway.delete_period(202401)
        return (
            await gateway.list_period_nos(),
            await gateway.get_table(202401, TableKind.RESOURCE),
            await gateway.get_table(202401, TableKind.CUSTOMER_PROFIT),
            await gateway.get_table(202402, TableKind.RESOURCE),
        )

    nos, res, cp, other = asyncio.run(scenario())
    assert nos == [202402]
    assert res == [] and cp == []
    assert other == [{"x": 202402}]


def test_sessions_oldest_first(gateway) -> None:
    """Test that upload sessions are returned in upload order."""

    async def scenario():
        for i, ts in enumerate(["2024-02-01T00:00:00", "2024-01-01T00:00:00"]):
            await gateway.put_session(
                UploadSession(
                    session_id=f"s{i}",
                    file_name=f"f{i}.xlsx",
                    period_nos=[202401],
                    uploaded_at=ts,
                    sheet_status={},
                    row_counts={},
                )
            )
        return await gateway.get_sessions()

    assert [s.session_id for s in asyncio.run(scenario())] == ["s1", "s0"]


def test_dimensions_roundtrip(gateway) -> None:
    """Test that dimensions are stored per period."""
    dims = Dimensions(
        customers=[DimCustomer(202401, "C1", "Alpha", "ACME", "BU1")],
        products=[],
        facts=[FactCustomerProduct(202401, "C1", "P1", 10.0, 1.0, 9.0, 2.0)],
    )

    async def scenario():
        await gateway.put_dimensions(202401, dims)
        return await gateway.get_dimensions(202401), await gateway.get_dimensions(202402)

    stored, empty = asyncio.run(scenario())
    assert stored == dims
    assert empty.customers == [] and empty.facts == []


def test_memory_storage_isolates_callers() -> None:
    """Test that mutating returned rows does not change the store."""
    storage = MemoryStorage()

    async def scenario():
        rows = [{"a": 1}]
        await storage.put_table(202401, TableKind.RESOURCE, rows)
        rows[0]["a"] = 2
        read = await storage.get_table(202401, TableKind.RESOURCE)
        read[0]["a"] = 3
        return await storage.get_table(202401, TableKind.RESOURCE)

    assert asyncio.run(scenario()) == [{"a": 1}]


class TestJsonFileStorage:
    def test_layout(self, tmp_path) -> None:
        """Test the on-disk layout under the data root."""
        paths = DataPaths.from_root(tmp_path)
        storage = JsonFileStorage(paths)

        async def scenario():
            await storage.put_table(202401, TableKind.ACTIVITY_MODEL, [])
            await storage.put_period(PeriodInfo(period_no=202401))

        asyncio.run(scenario())
        assert (paths.periods / "202401.json").exists()
        assert (paths.period_tables(202401) / "ActivityCenter+ActivityModel.json").exists()

    def test_numpy_values_serialize(self, tmp_path) -> None:
        """Test that numpy scalars from pandas are written as plain numbers."""
        storage = JsonFileStorage(DataPaths.from_root(tmp_path))

        async def scenario():
            await storage.put_table(202401, TableKind.RESOURCE, [{"Amount": np.float64(1.5), "n": np.int64(3)}])
            return await storage.get_table(202401, TableKind.RESOURCE)

        assert asyncio.run(scenario()) == [{"Amount": 1.5, "n": 3}]

    def test_corrupt_table_is_transient_read_error(self, tmp_path) -> None:
        """Test that an unreadable table file raises TransientReadError."""
        paths = DataPaths.from_root(tmp_path)
        storage = JsonFileStorage(paths)
        paths.period_tables(202401).mkdir(parents=True)
        (paths.period_tables(202401) / "Resource.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(TransientReadError):
            asyncio.run(storage.get_table(202401, TableKind.RESOURCE))

    def test_data_survives_new_instance(self, tmp_path) -> None:
        """Test that a second gateway on the same root sees the data."""
        paths = DataPaths.from_root(tmp_path)
        asyncio.run(JsonFileStorage(paths).put_period(PeriodInfo(period_no=202405)))
        assert asyncio.run(JsonFileStorage(paths).list_period_nos()) == [202405]
