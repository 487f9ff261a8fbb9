"""Workbook decoder: an uploaded .xlsx into raw rows per sheet.

Each non-ignored sheet becomes a list of string-keyed rows. Headers are
trimmed, empty cells become ``""`` and fully blank rows are dropped.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Union

import pandas as pd

from abc_core.config import IGNORED_SHEETS
from abc_core.exceptions import DecodeError
from abc_core.tables import Row, trim_keys

logger = logging.getLogger(__name__)

WorkbookSource = Union[str, Path, bytes]


def sheet_to_rows(df: pd.DataFrame) -> list[Row]:
    """Convert one decoded sheet into raw rows.

    Args:
        df: Sheet read with ``dtype=object`` and the first row as header.

    Returns:
        One dict per non-blank row, keys trimmed, empty cells as ``""``.
    """
    df = df.loc[:, ~df.columns.astype(str).str.startswith("Unnamed")]
    df = df.dropna(how="all")
    df = df.astype(object).where(pd.notna(df), "")
    df.columns = [str(c) for c in df.columns]
    return [trim_keys(rec) for rec in df.to_dict(orient="records")]


def decode_workbook(
    source: WorkbookSource,
    ignored_sheets: Iterable[str] = IGNORED_SHEETS,
) -> dict[str, list[Row]]:
    """Decode a workbook into raw rows per sheet.

    Args:
        source: Path to an .xlsx file or its raw bytes.
        ignored_sheets: Sheet names skipped regardless of content.

    Returns:
        Sheet name -> raw rows, for every non-ignored sheet with at least one row.

    Raises:
        DecodeError: If the workbook cannot be opened or parsed.
    """
    ignored = set(ignored_sheets)
    handle: Any = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    try:
        sheets = pd.read_excel(handle, sheet_name=None, dtype=object, engine="openpyxl")
    except Exception as e:
        raise DecodeError(f"Could not decode workbook {_describe(source)}: {e}") from e

    parsed: dict[str, list[Row]] = {}
    for name, df in sheets.items():
        if name in ignored:
            logger.debug("Skipping ignored sheet %s", name)
            continue
        rows = sheet_to_rows(df)
        if rows:
            parsed[str(name)] = rows
            logger.debug("Decoded sheet %s: %d rows", name, len(rows))
    return parsed


def _describe(source: WorkbookSource) -> str:
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return str(source)
