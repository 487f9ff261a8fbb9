"""Normalization of raw ABC spreadsheet rows.

Layers, leaf first:

- **extractors**: cell values into canonical keys and numbers
- **periods**: fallback (Year, Month) and the distinct periods of an upload
- **rows**: one raw row into a canonical row (KEY_RULES dispatch)
- **dataset**: all eight sheets of one upload, partitioned by period
- **dimensions**: customer/product dimensions and customer x product fact

Example:
    >>> from abc_core.normalize import normalize_all, partition_by_period
    >>> dataset = normalize_all(parsed_sheets)
    >>> for period_no, tables in partition_by_period(dataset).items():
    ...     print(period_no, {kind.value: len(rows) for kind, rows in tables.items()})
"""

from abc_core.normalize.dataset import NormalizedDataset, normalize_all, partition_by_period
from abc_core.normalize.dimensions import Dimensions, build_dimensions
from abc_core.normalize.extractors import (
    extract_bu_code,
    extract_code,
    extract_id,
    normalize_activity_center,
    to_number,
    to_number_or_null,
)
from abc_core.normalize.periods import YearMonth, extract_period_nos, format_period, resolve_fallback
from abc_core.normalize.rows import KEY_RULES, KeyRules, normalize_row, normalize_sheet

__all__ = [
    "Dimensions",
    "KEY_RULES",
    "KeyRules",
    "NormalizedDataset",
    "YearMonth",
    "build_dimensions",
    "extract_bu_code",
    "extract_code",
    "extract_id",
    "extract_period_nos",
    "format_period",
    "normalize_activity_center",
    "normalize_all",
    "normalize_row",
    "normalize_sheet",
    "partition_by_period",
    "resolve_fallback",
    "to_number",
    "to_number_or_null",
]
