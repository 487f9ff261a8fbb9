"""ABC Core - Activity-Based-Costing workbook normalization and drill-down.

This package turns monthly ABC workbook exports into canonical rows stored
per period, and aggregates them for dashboards and drill-downs:

- **Raw**: the eight sheets of an .xlsx export
- **Canonical**: rows with join keys (customerId, activityCenterKey, ...) and periodNo
- **Aggregated**: per-period totals, top-N breakdowns, center drill-downs

Module Structure:
    abc_core.normalize: Field extractors, row and dataset normalization
    abc_core.ingest: Workbook decoding and upload
    abc_core.storage: Storage gateways (memory, JSON files)
    abc_core.aggregate: Dashboard, grouping, drill-downs
    abc_core.periods: Period-window selection
    abc_core.views: View states and request staleness
    abc_core.qa: Reconciliation checks

Quick Start:
    >>> import asyncio
    >>> from abc_core import DataPaths, EngineConfig
    >>> from abc_core.storage import JsonFileStorage
    >>> from abc_core.ingest import upload_files
    >>> from abc_core.aggregate import BY_CUSTOMER, load_breakdown, load_dashboard
    >>> from abc_core.periods import get_period_range
    >>>
    >>> storage = JsonFileStorage(DataPaths.from_root("data"))
    >>> asyncio.run(upload_files(storage, ["2024-01.xlsx", "2024-02.xlsx", "2024-03.xlsx"]))
    >>> dashboard = asyncio.run(load_dashboard(storage))
    >>> window = get_period_range([a.period_no for a in dashboard], 202402)
    >>> breakdown = asyncio.run(load_breakdown(storage, BY_CUSTOMER, window, EngineConfig(top_n=10)))
"""

__version__ = "0.1.0"

from abc_core.config import DataPaths, EngineConfig
from abc_core.exceptions import (
    AbcAPIError,
    ConfigError,
    DataQualityError,
    DataUnavailableError,
    DecodeError,
    ETLError,
    StorageError,
    TransientReadError,
)
from abc_core.tables import TableKind

__all__ = [
    "AbcAPIError",
    "ConfigError",
    "DataPaths",
    "DataQualityError",
    "DataUnavailableError",
    "DecodeError",
    "ETLError",
    "EngineConfig",
    "StorageError",
    "TableKind",
    "TransientReadError",
    "__version__",
]
