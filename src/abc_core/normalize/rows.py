"""Row normalizer: raw spreadsheet rows into canonical rows.

A canonical row keeps every raw column (keys trimmed), coerces the known
amount/ratio columns and adds six join keys shared by all table kinds:

- ``periodNo``: reporting period (YYYYMM), 0 when undetermined
- ``company``: from ``Company`` or ``Company Code``
- ``buCode``: business-unit code before the first ``:``
- ``customerId``, ``activityCenterKey``, ``activityCodeKey``: extracted
  from table-kind specific columns

Each table kind stores its join keys in different source columns. The
dispatch lives in ``KEY_RULES``; a kind that resolves a key from the wrong
column produces rows that silently never match downstream filters.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Optional

from abc_core.normalize.extractors import (
    cell_text,
    extract_bu_code,
    extract_code,
    extract_id,
    normalize_activity_center,
    parse_number,
    to_number,
    to_number_or_null,
)
from abc_core.normalize.periods import YearMonth
from abc_core.tables import AMOUNT_COLUMNS, RATIO_COLUMNS, TABLE_KINDS, Row, TableKind, trim_keys

logger = logging.getLogger(__name__)

KeyRule = Callable[[Mapping[str, Any]], str]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _empty(row: Mapping[str, Any]) -> str:
    return ""


def _raw_text(column: str) -> KeyRule:
    """Stringify a column as-is, no ``:`` splitting."""

    def rule(row: Mapping[str, Any]) -> str:
        return cell_text(row.get(column))

    return rule


def _id_from(column: str) -> KeyRule:
    def rule(row: Mapping[str, Any]) -> str:
        return extract_id(row.get(column))

    return rule


def _code_from(column: str) -> KeyRule:
    def rule(row: Mapping[str, Any]) -> str:
        return extract_code(row.get(column))

    return rule


def _center_from(column: str) -> KeyRule:
    def rule(row: Mapping[str, Any]) -> str:
        return normalize_activity_center(row.get(column))

    return rule


@dataclass(frozen=True)
class KeyRules:
    """How one table kind derives its join keys.

    Attributes:
        customer_id: Rule producing ``customerId``.
        activity_center: Rule producing ``activityCenterKey``.
        activity_code: Rule producing ``activityCodeKey``.
        bu_code_column: Column holding the composite business-unit value.
    """

    customer_id: KeyRule = _empty
    activity_center: KeyRule = _empty
    activity_code: KeyRule = _empty
    bu_code_column: str = "Business Unit"


KEY_RULES: dict[TableKind, KeyRules] = {
    TableKind.RESOURCE: KeyRules(
        activity_center=_center_from("Activity Center"),
    ),
    TableKind.ACTIVITY_MODEL: KeyRules(
        activity_center=_center_from("Activity Center- Level 2"),
        activity_code=_code_from("Activity - Level 2"),
    ),
    TableKind.ACTIVITY_DRIVER: KeyRules(
        customer_id=_id_from("ValueObject"),
        activity_center=_center_from("Activity Center"),
        activity_code=_code_from("Activity - Level 2"),
    ),
    TableKind.CUSTOMER_SERVICE_COST: KeyRules(
        customer_id=_id_from("Customer"),
        activity_center=_center_from("Activity Center"),
        activity_code=_code_from("Code"),
    ),
    TableKind.INCOME_STATEMENT: KeyRules(
        customer_id=_raw_text("Customer"),
    ),
    TableKind.CUSTOMER_PROFIT: KeyRules(
        customer_id=_raw_text("CustomerID"),
    ),
    TableKind.PRODUCT_PROFIT: KeyRules(),
    TableKind.CUSTOMER_PRODUCT_PROFIT: KeyRules(
        customer_id=_id_from("Customer"),
        activity_center=_center_from("SalesActivityCenter"),
        bu_code_column="Business Unit Code",
    ),
}

_missing_rules = set(TABLE_KINDS) - set(KEY_RULES)
if _missing_rules:
    raise RuntimeError(f"KEY_RULES is missing table kinds: {sorted(k.value for k in _missing_rules)}")


def coerce_amounts(row: Mapping[str, Any]) -> Row:
    """Coerce the known amount/ratio columns present on a row.

    Ratio columns become None when empty or not numeric; every other amount
    column becomes 0. Absent columns are left untouched.
    """
    out = dict(row)
    for key in AMOUNT_COLUMNS:
        if key not in out:
            continue
        value = out[key]
        if key in RATIO_COLUMNS:
            # an empty ratio cell is "no ratio", not 0
            blank = _is_blank(value) or (isinstance(value, str) and not value.strip())
            out[key] = None if blank else to_number_or_null(value)
        else:
            out[key] = to_number(value, 0)
    return out


def resolve_company(row: Mapping[str, Any]) -> str:
    """First non-empty of ``Company`` and ``Company Code``, trimmed."""
    for column in ("Company", "Company Code"):
        text = cell_text(row.get(column)).strip()
        if text:
            return text
    return ""


def resolve_period_no(row: Mapping[str, Any], fallback: Optional[YearMonth] = None) -> int:
    """Reporting period of a row.

    Uses the row's own ``PeriodNo`` when it holds a whole number, otherwise
    ``fallback.year * 100 + fallback.month``, otherwise 0.

    Examples:
        >>> resolve_period_no({"PeriodNo": "202402"})
        202402
        >>> resolve_period_no({"PeriodNo": ""}, YearMonth(2024, 1))
        202401
        >>> resolve_period_no({})
        0
    """
    raw = row.get("PeriodNo")
    if not _is_blank(raw):
        value = parse_number(raw)
        if math.isfinite(value) and value.is_integer():
            return int(value)
    if fallback is not None:
        return fallback.period_no
    return 0


def normalize_row(
    row: Mapping[str, Any],
    kind: TableKind | str,
    fallback: Optional[YearMonth] = None,
) -> Row:
    """Turn one raw row into a canonical row.

    Args:
        row: Raw row, spreadsheet-column-name keyed.
        kind: Table kind the row comes from.
        fallback: Period used when the row carries no ``PeriodNo``.

    Returns:
        Copy of the row with trimmed keys, coerced amounts and the six
        normalized fields.
    """
    kind = TableKind.parse(kind)
    rules = KEY_RULES[kind]
    out = coerce_amounts(trim_keys(row))
    out["periodNo"] = resolve_period_no(out, fallback)
    out["company"] = resolve_company(out)
    out["buCode"] = extract_bu_code(out.get(rules.bu_code_column))
    out["customerId"] = rules.customer_id(out)
    out["activityCenterKey"] = rules.activity_center(out)
    out["activityCodeKey"] = rules.activity_code(out)
    return out


def normalize_sheet(
    rows: Iterable[Mapping[str, Any]],
    kind: TableKind | str,
    fallback: Optional[YearMonth] = None,
) -> list[Row]:
    """Normalize every row of one sheet."""
    kind = TableKind.parse(kind)
    out = [normalize_row(row, kind, fallback) for row in rows]
    logger.debug("Normalized %d %s rows", len(out), kind)
    return out
