"""Tests for view states, error isolation and stale-request handling."""

import asyncio

from abc_core.aggregate.dashboard import load_dashboard
from abc_core.aggregate.drilldown import load_center_drilldown
from abc_core.aggregate.grouping import BY_CUSTOMER, load_breakdown
from abc_core.exceptions import DataUnavailableError, TransientReadError
from abc_core.tables import TableKind
from abc_core.views import RequestTracker, ViewBoard, ViewResult, ViewStatus, run_view


def test_tracker_tokens_increase() -> None:
    """Test that tokens increase and only the latest per view is current."""
    tracker = RequestTracker()
    a1 = tracker.issue("a")
    b1 = tracker.issue("b")
    a2 = tracker.issue("a")
    assert a1 < b1 < a2
    assert not tracker.is_current("a", a1)
    assert tracker.is_current("a", a2)
    assert tracker.is_current("b", b1)
    tracker.invalidate("b")
    assert not tracker.is_current("b", b1)


def test_run_view_ok_and_empty() -> None:
    """Test OK for data and NO_DATA for empty results."""
    tracker = RequestTracker()

    async def data():
        return [1, 2]

    async def empty():
        return []

    ok = asyncio.run(run_view(tracker, "v", data))
    assert ok.status == ViewStatus.OK
    assert ok.data == [1, 2]
    assert asyncio.run(run_view(tracker, "v", empty)).status == ViewStatus.NO_DATA


def test_run_view_maps_errors() -> None:
    """Test that read failures become ERROR and missing data NO_DATA."""
    tracker = RequestTracker()

    async def failing():
        raise TransientReadError("read rejected")

    async def unavailable():
        raise DataUnavailableError("No data for activity center 'X'")

    error = asyncio.run(run_view(tracker, "v", failing))
    assert error.status == ViewStatus.ERROR
    assert "read rejected" in error.message
    no_data = asyncio.run(run_view(tracker, "v", unavailable))
    assert no_data.status == ViewStatus.NO_DATA
    assert "'X'" in no_data.message


def test_stale_result_discarded() -> None:
    """Test that an older request finishing last does not overwrite a newer one."""
    board = ViewBoard()

    async def scenario():
        slow_started = asyncio.Event()

        async def slow():
            slow_started.set()
            await asyncio.sleep(0.05)
            return ["old"]

        async def fast():
            return ["new"]

        first = asyncio.create_task(board.refresh("breakdown", slow))
        await slow_started.wait()
        second = await board.refresh("breakdown", fast)
        await first
        return second, board.state("breakdown")

    second, final = asyncio.run(scenario())
    assert second.data == ["new"]
    assert final.status == ViewStatus.OK
    assert final.data == ["new"]


def test_stale_run_view_returns_none() -> None:
    """Test that run_view reports a superseded request as None."""
    tracker = RequestTracker()

    async def scenario():
        async def loader():
            tracker.issue("v")
            return [1]

        return await run_view(tracker, "v", loader)

    assert asyncio.run(scenario()) is None


def test_board_initial_state_is_loading() -> None:
    """Test that a view that never loaded shows LOADING."""
    assert ViewBoard().state("dashboard") == ViewResult(ViewStatus.LOADING)


def test_failing_view_does_not_affect_others(flaky_storage, seeded, make_row) -> None:
    """Test that one view's failed read leaves the other views intact."""
    seeded(
        flaky_storage,
        {
            202401: {
                TableKind.CUSTOMER_PROFIT: [make_row(TableKind.CUSTOMER_PROFIT, 202401, CustomerID="C1", CustomerProfit=5)],
                TableKind.CUSTOMER_PRODUCT_PROFIT: [
                    make_row(
                        TableKind.CUSTOMER_PRODUCT_PROFIT,
                        202401,
                        Customer="C1:Alpha",
                        SalesActivityCenter="AC10",
                        Product="P1:Widget",
                        NetProfit=5,
                    )
                ],
            }
        },
    )
    flaky_storage.failing.add((202401, TableKind.CUSTOMER_PRODUCT_PROFIT))
    board = ViewBoard()

    async def scenario():
        return await asyncio.gather(
            board.refresh("dashboard", lambda: load_dashboard(flaky_storage)),
            board.refresh("breakdown:customer", lambda: load_breakdown(flaky_storage, BY_CUSTOMER, [202401])),
            board.refresh("drilldown", lambda: load_center_drilldown(flaky_storage, "AC10", [202401])),
            board.refresh("drilldown:other", lambda: load_center_drilldown(flaky_storage, "AC10", [202402])),
        )

    dashboard, breakdown, drill, other = asyncio.run(scenario())
    assert dashboard.status == ViewStatus.OK
    assert breakdown.status == ViewStatus.OK
    assert drill.status == ViewStatus.ERROR
    assert other.status == ViewStatus.NO_DATA
