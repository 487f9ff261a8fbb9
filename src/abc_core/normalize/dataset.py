"""Dataset normalizer: all eight sheets of one upload.

Applies the row normalizer to every table kind with the upload's fallback
period, enumerates the periods the upload covers and partitions the
canonical rows by period for persistence.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from abc_core.normalize.periods import YearMonth, extract_period_nos, resolve_fallback
from abc_core.normalize.rows import normalize_sheet
from abc_core.tables import TABLE_KINDS, Row, TableKind, validate_sheets

logger = logging.getLogger(__name__)

RawSheets = Mapping[str, Sequence[Mapping[str, Any]]]


@dataclass
class NormalizedDataset:
    """Canonical rows for one uploaded file.

    Attributes:
        period_nos: Ascending distinct periods the upload covers.
        normalized_data: Table kind -> canonical rows (all eight kinds present).
        sheet_status: Sheet name -> True when present with required columns.
        fallback: Period used for rows without ``PeriodNo``, if any.
    """

    period_nos: list[int]
    normalized_data: dict[TableKind, list[Row]]
    sheet_status: dict[str, bool] = field(default_factory=dict)
    fallback: Optional[YearMonth] = None

    def row_counts(self) -> dict[str, int]:
        return {kind.value: len(rows) for kind, rows in self.normalized_data.items()}


def normalize_all(parsed: RawSheets) -> NormalizedDataset:
    """Normalize every table kind of one upload.

    Sheets that are missing normalize to empty lists; an invalid sheet is
    still normalized (partial success), its status is reported separately.

    Args:
        parsed: Sheet name -> raw rows, as produced by the workbook decoder.

    Returns:
        NormalizedDataset with periods, canonical rows and sheet status.
    """
    fallback = resolve_fallback(parsed)
    normalized: dict[TableKind, list[Row]] = {}
    for kind in TABLE_KINDS:
        normalized[kind] = normalize_sheet(parsed.get(kind.value) or [], kind, fallback)

    period_nos = extract_period_nos(parsed)
    status = validate_sheets(parsed)
    logger.info(
        "Normalized upload: periods=%s, valid sheets=%d/%d",
        period_nos,
        sum(status.values()),
        len(status),
    )
    return NormalizedDataset(
        period_nos=period_nos,
        normalized_data=normalized,
        sheet_status=status,
        fallback=fallback,
    )


def partition_by_period(dataset: NormalizedDataset) -> dict[int, dict[TableKind, list[Row]]]:
    """Split canonical rows by ``periodNo``.

    Every period in ``dataset.period_nos`` and every period a row resolved to
    (including 0 for undetermined rows) gets all eight kinds, with an empty
    list where a kind has no rows for that period.

    Returns:
        periodNo -> table kind -> rows of that period only, periods ascending.
    """
    periods = set(dataset.period_nos)
    for rows in dataset.normalized_data.values():
        periods.update(int(row["periodNo"]) for row in rows)

    out: dict[int, dict[TableKind, list[Row]]] = {
        period: {kind: [] for kind in TABLE_KINDS} for period in sorted(periods)
    }
    for kind, rows in dataset.normalized_data.items():
        for row in rows:
            out[int(row["periodNo"])][kind].append(row)

    if 0 in out:
        logger.warning(
            "%d row(s) have no determinable period and are stored under period 0",
            sum(len(rows) for rows in out[0].values()),
        )
    return out
