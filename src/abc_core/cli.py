"""Command-line interface for ABC Core.

Examples:
    $ abc-core upload exports/2024-01.xlsx exports/2024-02.xlsx
    $ abc-core periods
    $ abc-core dashboard
    $ abc-core breakdown customer --period 202402 --check
    $ abc-core drilldown product --center "AC10:Sales Support" --period 202402
    $ abc-core customer 1404 --period 202402
    $ abc-core delete 202401 --data-root /path/to/data

Exit codes: 0 on success, 1 when some files or reads failed, 2 on usage
errors or when there is no data to show.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from typing import Any, Optional

import pandas as pd

from abc_core.aggregate.dashboard import load_dashboard
from abc_core.aggregate.details import load_customer_products, load_service_cost_by_center
from abc_core.aggregate.drilldown import DRILL_DIMENSIONS, load_center_drilldown
from abc_core.aggregate.grouping import (
    BREAKDOWNS,
    GroupedBreakdown,
    get_breakdown_spec,
    load_breakdown,
    read_window,
)
from abc_core.config import DataPaths, EngineConfig
from abc_core.exceptions import AbcAPIError, StorageError
from abc_core.formatting import format_currency, format_percent
from abc_core.ingest.upload import upload_files
from abc_core.normalize.periods import format_period
from abc_core.periods import get_period_range
from abc_core.qa.api import check_completeness
from abc_core.storage.base import StorageGateway
from abc_core.storage.json_store import JsonFileStorage
from abc_core.views import RequestTracker, ViewResult, ViewStatus, run_view

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_NO_DATA = 2


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="abc-core",
        description="Normalize ABC workbook exports and explore profitability by period.",
    )
    p.add_argument(
        "--data-root",
        default="data",
        help="Root directory for stored periods and tables (default: 'data').",
    )
    p.add_argument(
        "--top-n",
        type=int,
        default=EngineConfig.top_n,
        help="Groups shown before folding the rest into Others (default: %(default)s).",
    )
    p.add_argument(
        "--window",
        type=int,
        default=EngineConfig.window_size,
        help="Number of periods in a drill-down window (default: %(default)s).",
    )
    p.add_argument(
        "--hide-unknown-period",
        action="store_true",
        help="Leave rows without a determinable period out of dashboard and windows.",
    )
    p.add_argument("--quiet", action="store_true", help="Less logging output.")
    p.add_argument(
        "--verbose",
        "--debug",
        action="store_true",
        dest="verbose",
        help="Verbose/debug logging output.",
    )

    sub = p.add_subparsers(dest="command", required=True)

    up = sub.add_parser("upload", help="Upload one or more .xlsx exports.")
    up.add_argument("files", nargs="+", help="Workbook path(s).")

    sub.add_parser("periods", help="List stored periods.")

    rm = sub.add_parser("delete", help="Delete a period and all of its tables.")
    rm.add_argument("period", type=int, help="Period number, e.g. 202401.")

    sub.add_parser("dashboard", help="Per-period totals.")

    bd = sub.add_parser("breakdown", help="Top-N breakdown over a window of periods.")
    bd.add_argument("by", choices=sorted(BREAKDOWNS), help="Grouping dimension.")
    bd.add_argument("--period", type=int, required=True, help="Period the window is centered on.")
    bd.add_argument("--check", action="store_true", help="Verify that totals reconcile with raw rows.")

    dd = sub.add_parser("drilldown", help="One sales activity center by product or customer.")
    dd.add_argument("by", choices=DRILL_DIMENSIONS, help="Grouping dimension.")
    dd.add_argument("--center", required=True, help="Activity-center key.")
    dd.add_argument("--period", type=int, required=True, help="Period the window is centered on.")

    cu = sub.add_parser("customer", help="Products and service cost of one customer in one period.")
    cu.add_argument("customer_id", help="Customer id, e.g. 1404.")
    cu.add_argument("--period", type=int, required=True, help="Period number.")

    return p


def _print_breakdown(breakdown: GroupedBreakdown) -> None:
    columns = [format_period(p) for p in breakdown.window]
    table = pd.DataFrame(
        [[row.value_for(p) for p in breakdown.window] + [row.total] for row in breakdown.rows],
        index=[row.group for row in breakdown.rows],
        columns=columns + ["Total"],
    )
    totals = [breakdown.month_total(p) for p in breakdown.window]
    table.loc["Month total"] = totals + [sum(totals)]
    print(table.to_string(float_format=format_currency))


def _report(result: Optional[ViewResult[Any]]) -> int:
    if result is None or result.status == ViewStatus.ERROR:
        print(f"ERROR: {result.message if result else 'request superseded'}", file=sys.stderr)
        return EXIT_PARTIAL
    if result.status == ViewStatus.NO_DATA:
        print(result.message or "No data")
        return EXIT_NO_DATA
    return EXIT_OK


async def _window(storage: StorageGateway, period: int, config: EngineConfig) -> list[int]:
    known = await storage.list_period_nos()
    return get_period_range(known, period, config.window_size, config.include_unknown_period)


async def _run(args: argparse.Namespace, storage: StorageGateway, config: EngineConfig) -> int:
    tracker = RequestTracker()

    if args.command == "upload":
        report = await upload_files(storage, args.files, config)
        print(report.summary())
        for result in report.results:
            periods = ", ".join(format_period(p) for p in result.period_nos)
            print(f"  {result.file_name}: {periods}")
            for name in result.invalid_sheets:
                print(f"    invalid sheet: {name}")
        return EXIT_OK if report.ok else EXIT_PARTIAL

    if args.command == "periods":
        infos = await storage.get_periods()
        if not infos:
            print("No periods stored")
            return EXIT_NO_DATA
        for info in infos:
            invalid = [name for name, ok in info.sheet_status.items() if not ok]
            note = f" (invalid: {', '.join(invalid)})" if invalid else ""
            print(f"{info.period_no}\t{format_period(info.period_no)}\t{info.uploaded_at}{note}")
        return EXIT_OK

    if args.command == "delete":
        if await storage.get_period(args.period) is None:
            print(f"Period {args.period} is not stored")
            return EXIT_NO_DATA
        await storage.delete_period(args.period)
        print(f"Deleted period {args.period}")
        return EXIT_OK

    if args.command == "dashboard":
        result = await run_view(tracker, "dashboard", lambda: load_dashboard(storage, config))
        code = _report(result)
        if code == EXIT_OK:
            for agg in result.data:
                print(
                    f"{format_period(agg.period_no)}  profit {format_currency(agg.total_profitability)}"
                    f"  revenue {format_currency(agg.total_revenue)}"
                    f"  service cost {format_currency(agg.total_service_cost)}"
                    f"  customers {agg.customer_count}"
                    f"  avg ratio {format_percent(agg.avg_profit_ratio)}"
                )
        return code

    if args.command == "breakdown":
        spec = get_breakdown_spec(args.by)
        window = await _window(storage, args.period, config)
        result = await run_view(
            tracker,
            f"breakdown:{spec.name}",
            lambda: load_breakdown(storage, spec, window, config),
        )
        code = _report(result)
        if code != EXIT_OK:
            return code
        _print_breakdown(result.data)
        if args.check:
            rows_by_period = await read_window(storage, spec.table, window)
            qa = check_completeness(result.data, rows_by_period, spec.value_column)
            print(f"Reconciliation: {'ok' if qa.ok else 'MISMATCH'}")
            if not qa.ok:
                return EXIT_PARTIAL
        return EXIT_OK

    if args.command == "drilldown":
        window = await _window(storage, args.period, config)
        result = await run_view(
            tracker,
            f"drilldown:{args.by}",
            lambda: load_center_drilldown(storage, args.center, window, by=args.by, config=config),
        )
        code = _report(result)
        if code == EXIT_OK:
            _print_breakdown(result.data)
        return code

    if args.command == "customer":
        products, costs = await asyncio.gather(
            run_view(
                tracker,
                "customer:products",
                lambda: load_customer_products(storage, args.period, args.customer_id),
            ),
            run_view(
                tracker,
                "customer:service_cost",
                lambda: load_service_cost_by_center(storage, args.period, args.customer_id),
            ),
        )
        codes = [_report(products), _report(costs)]
        if products is not None and products.status == ViewStatus.OK:
            for row in products.data:
                print(f"{row.get('Product', '')}\t{format_currency(float(row.get('NetProfit') or 0))}")
        if costs is not None and costs.status == ViewStatus.OK:
            for cost in costs.data:
                print(f"{cost.activity_center_key}\t{format_currency(cost.total_amount)}\t{cost.count}")
        # one failed view makes the whole command a partial failure
        if EXIT_PARTIAL in codes:
            return EXIT_PARTIAL
        return min(codes)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    log_level = logging.DEBUG if args.verbose else (logging.WARNING if args.quiet else logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = EngineConfig(
            top_n=args.top_n,
            window_size=args.window,
            include_unknown_period=not args.hide_unknown_period,
        )
        paths = DataPaths.from_root(args.data_root)
        paths.ensure_dirs()
        return asyncio.run(_run(args, JsonFileStorage(paths), config))
    except StorageError as e:
        logger.debug("Storage failure", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_PARTIAL
    except (AbcAPIError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_NO_DATA


if __name__ == "__main__":
    raise SystemExit(main())
