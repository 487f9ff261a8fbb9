"""Aggregation over stored canonical rows.

- **dashboard**: per-period scalar aggregates
- **grouping**: top-N grouping with Others over a period window
- **drilldown**: one sales activity center by product or customer
- **details**: single-period customer -> activity -> resource drills
"""

from abc_core.aggregate.dashboard import (
    PeriodAggregate,
    compute_period_aggregate,
    load_dashboard,
    load_period_aggregate,
)
from abc_core.aggregate.details import (
    CenterCost,
    activity_driver_detail,
    activity_model_detail,
    customer_overview,
    customer_products,
    load_activity_drivers,
    load_activity_model,
    load_customer_products,
    load_resources,
    load_service_cost_by_center,
    resource_detail,
    service_cost_by_center,
)
from abc_core.aggregate.drilldown import DRILL_DIMENSIONS, drill_center, load_center_drilldown
from abc_core.aggregate.grouping import (
    BREAKDOWNS,
    BY_CUSTOMER,
    BY_PRODUCT,
    BY_SALES_ACTIVITY_CENTER,
    GroupedBreakdown,
    GroupedRow,
    GroupingSpec,
    MonthTotal,
    PeriodValue,
    get_breakdown_spec,
    group_top_n,
    load_breakdown,
)

__all__ = [
    "BREAKDOWNS",
    "BY_CUSTOMER",
    "BY_PRODUCT",
    "BY_SALES_ACTIVITY_CENTER",
    "CenterCost",
    "DRILL_DIMENSIONS",
    "GroupedBreakdown",
    "GroupedRow",
    "GroupingSpec",
    "MonthTotal",
    "PeriodAggregate",
    "PeriodValue",
    "activity_driver_detail",
    "activity_model_detail",
    "compute_period_aggregate",
    "customer_overview",
    "customer_products",
    "drill_center",
    "get_breakdown_spec",
    "group_top_n",
    "load_activity_drivers",
    "load_activity_model",
    "load_breakdown",
    "load_center_drilldown",
    "load_customer_products",
    "load_dashboard",
    "load_period_aggregate",
    "load_resources",
    "load_service_cost_by_center",
    "resource_detail",
    "service_cost_by_center",
]
