"""Table kinds of an ABC export and their column schemas.

An uploaded workbook carries eight related sheets. Each kind has its own
column layout; this module holds the fixed enumeration, the required columns
used for upload validation and the allow-lists of numeric columns.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class TableKind(str, Enum):
    """The eight sheets of an ABC export, in display order."""

    RESOURCE = "Resource"
    ACTIVITY_MODEL = "ActivityCenter+ActivityModel"
    ACTIVITY_DRIVER = "ActivityDriver"
    CUSTOMER_SERVICE_COST = "CustomerServiceCost"
    INCOME_STATEMENT = "IncomeStatment"
    CUSTOMER_PROFIT = "CustomerProfitResult"
    PRODUCT_PROFIT = "ProductProfitResult"
    CUSTOMER_PRODUCT_PROFIT = "CustomerProductProfit"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | TableKind) -> TableKind:
        """Return the kind named by a sheet name.

        Raises:
            ValueError: If the name is not one of the eight sheet names.
        """
        if isinstance(value, TableKind):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Invalid table kind '{value}'. Must be one of: {valid}.") from None


TABLE_KINDS: tuple[TableKind, ...] = tuple(TableKind)

REQUIRED_COLUMNS: dict[TableKind, tuple[str, ...]] = {
    TableKind.CUSTOMER_PROFIT: ("CustomerID", "PeriodNo", "CustomerProfit"),
    TableKind.CUSTOMER_PRODUCT_PROFIT: ("Customer", "PeriodNo", "NetProfit"),
    TableKind.CUSTOMER_SERVICE_COST: ("Customer", "PeriodNo", "Activity Center", "Amount"),
    TableKind.ACTIVITY_DRIVER: ("Activity Center", "PeriodNo", "ValueObject", "ActCost"),
    TableKind.ACTIVITY_MODEL: ("Activity Center- Level 2", "PeriodNo", "Amount"),
    TableKind.RESOURCE: ("Activity Center", "PeriodNo", "Amount"),
    TableKind.INCOME_STATEMENT: ("Year", "Month", "Customer"),
    TableKind.PRODUCT_PROFIT: ("ProductID", "PeriodNo"),
}

# Ratios distinguish "no ratio" (None) from zero.
RATIO_COLUMNS = frozenset({"CustomerProfitRatio", "ProductProfitRatio", "Ratio"})

AMOUNT_COLUMNS: tuple[str, ...] = (
    "Amount",
    "ActCost",
    "StdCost",
    "Price",
    "ServiceCost",
    "CustomerProfit",
    "NetProfit",
    "TotalCost",
    "ManagementCost",
    "ManufactureCost",
    "SalesProfit",
    "GrossMargin",
    "ProjectCost",
    "NetIncome",
    "ProductCost",
    "ServiceAmount",
    "VC_ServiceCost",
    "CustomersProfit",
    "ProductProfit",
    "ResourceDriverValue",
    "ActvivtyDriverValue",
    "ActivityCenterDriverRate",
    "ActivityCenterDriverValue",
    "DriverValue",
    "Ratio",
    "ServiceDriverValue",
    "CustomerProfitRatio",
    "ProductProfitRatio",
    "Quantity",
    "SalesVolume",
    "UnitPrice",
    "ProductUnitCost",
)

NORMALIZED_FIELDS: tuple[str, ...] = (
    "periodNo",
    "company",
    "buCode",
    "customerId",
    "activityCenterKey",
    "activityCodeKey",
)


def trim_keys(row: Mapping[str, Any]) -> Row:
    """Return a copy of a raw row with surrounding whitespace removed from keys.

    Spreadsheet exports carry headers such as ``" Business Unit"``; every
    downstream lookup uses the trimmed name.

    Examples:
        >>> trim_keys({" Business Unit": "LUNA_AnCor:LUNA"})
        {'Business Unit': 'LUNA_AnCor:LUNA'}
    """
    return {str(key).strip(): value for key, value in row.items()}


def is_sheet_valid(kind: TableKind, rows: Sequence[Mapping[str, Any]]) -> bool:
    """Check that a sheet is present, non-empty and has every required column.

    Only the first row's keys are inspected, matching how exports lay out a
    single header row for the whole sheet.
    """
    if not rows:
        return False
    actual = {str(key).strip() for key in rows[0].keys()}
    missing = [col for col in REQUIRED_COLUMNS[kind] if col not in actual]
    if missing:
        logger.debug("Sheet %s is missing required columns: %s", kind, missing)
        return False
    return True


def validate_sheets(parsed: Mapping[str, Sequence[Mapping[str, Any]]]) -> dict[str, bool]:
    """Build the per-sheet validation status shown after an upload.

    Args:
        parsed: Sheet name -> raw rows, as produced by the workbook decoder.

    Returns:
        Mapping of each of the eight table kind names to True when the sheet
        is present and carries all required columns for that kind.
    """
    return {kind.value: is_sheet_valid(kind, parsed.get(kind.value) or []) for kind in TABLE_KINDS}
