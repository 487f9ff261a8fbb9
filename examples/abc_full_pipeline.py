"""Example: upload ABC exports and walk the drill-down levels

This example uploads a set of monthly workbook exports and then reads the
aggregated views the same way a dashboard would:
1. Upload every .xlsx under exports/ (partial failures are reported)
2. Per-period totals (dashboard)
3. Customer breakdown over a three-period window, with a reconciliation check
4. Drill into the largest sales activity center by product

Prerequisites:
- Put one or more ABC exports (.xlsx with the eight standard sheets) in exports/
"""

import asyncio
from pathlib import Path

from abc_core import DataPaths, EngineConfig
from abc_core.aggregate import (
    BY_CUSTOMER,
    BY_SALES_ACTIVITY_CENTER,
    load_breakdown,
    load_center_drilldown,
    load_dashboard,
)
from abc_core.formatting import format_currency, format_period
from abc_core.ingest import upload_files
from abc_core.periods import get_period_range
from abc_core.qa import check_reconciliation
from abc_core.storage import JsonFileStorage

exports_dir = Path("exports")  # MODIFY AS NEEDED
paths = DataPaths.from_root("data")
config = EngineConfig(top_n=10)


async def run() -> None:
    storage = JsonFileStorage(paths)

    files = sorted(exports_dir.glob("*.xlsx"))
    print(f"Uploading {len(files)} workbook(s) from {exports_dir}...")
    report = await upload_files(storage, files, config)
    print(report.summary())

    dashboard = await load_dashboard(storage, config)
    if not dashboard:
        print("No periods with profit rows; nothing to show.")
        return

    print("\nDashboard:")
    for agg in dashboard:
        print(
            f"  {format_period(agg.period_no)}: profit {format_currency(agg.total_profitability)}, "
            f"{agg.customer_count} customers"
        )

    latest = dashboard[-1].period_no
    window = get_period_range([a.period_no for a in dashboard], latest, config.window_size)
    print(f"\nWindow around {format_period(latest)}: {[format_period(p) for p in window]}")

    customers = await load_breakdown(storage, BY_CUSTOMER, window, config)
    for row in customers.rows:
        print(f"  {row.group:<30} {format_currency(row.total)}")

    qa = check_reconciliation(customers, dashboard)
    print(f"Reconciled with dashboard: {qa.ok}")

    centers = await load_breakdown(storage, BY_SALES_ACTIVITY_CENTER, window, config)
    top_center = next((r for r in centers.rows if not r.is_others), None)
    if top_center is None:
        print("No sales activity centers in the window.")
        return

    print(f"\nProducts of {top_center.group}:")
    products = await load_center_drilldown(storage, top_center.data_key, window, by="product", config=config)
    for row in products.rows:
        print(f"  {row.group:<30} {format_currency(row.total)}")


asyncio.run(run())
