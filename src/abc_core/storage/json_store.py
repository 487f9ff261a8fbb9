"""JSON file storage gateway.

Persists period records, canonical tables, dimensions and upload sessions
as JSON files under a DataPaths root. File I/O runs in worker threads so
that concurrent reads of several periods overlap.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import numpy as np
import pandas as pd

from abc_core.config import DataPaths
from abc_core.exceptions import StorageError, TransientReadError
from abc_core.normalize.dimensions import Dimensions
from abc_core.storage.base import (
    PeriodInfo,
    StorageGateway,
    UploadSession,
    dimensions_from_dict,
    dimensions_to_dict,
)
from abc_core.tables import Row, TableKind

logger = logging.getLogger(__name__)

DIMENSIONS_FILE = "_dimensions.json"


def _json_default(value: Any) -> Any:
    """Encode the numpy/pandas/datetime values that spreadsheets produce."""
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.isoformat()
    if value is pd.NA or value is pd.NaT:
        return None
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _write_json(path: Path, data: Any) -> None:
    """Write JSON via a temp file and rename, so readers never see half a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
    tmp.write_text(json.dumps(data, default=_json_default, ensure_ascii=False), encoding="utf-8")
    os.replace(tmp, path)


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


class JsonFileStorage(StorageGateway):
    """Storage gateway backed by JSON files.

    Example:
        >>> from abc_core.config import DataPaths
        >>> storage = JsonFileStorage(DataPaths.from_root("data"))
        >>> asyncio.run(storage.list_period_nos())
        []
    """

    def __init__(self, paths: DataPaths) -> None:
        self.paths = paths
        self.paths.ensure_dirs()

    def _period_path(self, period_no: int) -> Path:
        return self.paths.periods / f"{int(period_no)}.json"

    def _table_path(self, period_no: int, kind: TableKind) -> Path:
        return self.paths.period_tables(period_no) / f"{TableKind.parse(kind).value}.json"

    # -- reads ---------------------------------------------------------------

    def _read_periods(self) -> list[PeriodInfo]:
        out = []
        for path in sorted(self.paths.periods.glob("*.json")):
            try:
                out.append(PeriodInfo.from_dict(_read_json(path)))
            except (OSError, ValueError, KeyError) as e:
                logger.warning("Skipping unreadable period record %s: %s", path, e)
        return out

    def _read_table(self, period_no: int, kind: TableKind) -> list[Row]:
        path = self._table_path(period_no, kind)
        if not path.exists():
            return []
        try:
            data = _read_json(path)
        except (OSError, ValueError) as e:
            raise TransientReadError(f"Could not read {kind} for period {period_no}: {e}") from e
        if not isinstance(data, list):
            raise TransientReadError(f"Table file {path} does not hold a row array")
        return data

    async def get_periods(self) -> list[PeriodInfo]:
        return await asyncio.to_thread(self._read_periods)

    async def get_period(self, period_no: int) -> Optional[PeriodInfo]:
        path = self._period_path(period_no)
        if not path.exists():
            return None
        try:
            return PeriodInfo.from_dict(await asyncio.to_thread(_read_json, path))
        except (OSError, ValueError, KeyError) as e:
            raise TransientReadError(f"Could not read period {period_no}: {e}") from e

    async def get_table(self, period_no: int, kind: TableKind) -> list[Row]:
        return await asyncio.to_thread(self._read_table, int(period_no), TableKind.parse(kind))

    async def get_sessions(self) -> list[UploadSession]:
        def _read() -> list[UploadSession]:
            sessions = [
                UploadSession.from_dict(_read_json(p)) for p in self.paths.sessions.glob("*.json")
            ]
            return sorted(sessions, key=lambda s: s.uploaded_at)

        try:
            return await asyncio.to_thread(_read)
        except (OSError, ValueError, TypeError) as e:
            raise TransientReadError(f"Could not read upload sessions: {e}") from e

    async def get_dimensions(self, period_no: int) -> Dimensions:
        path = self.paths.period_tables(period_no) / DIMENSIONS_FILE
        if not path.exists():
            return Dimensions(customers=[], products=[], facts=[])
        try:
            return dimensions_from_dict(await asyncio.to_thread(_read_json, path))
        except (OSError, ValueError, TypeError) as e:
            raise TransientReadError(f"Could not read dimensions for period {period_no}: {e}") from e

    # -- writes --------------------------------------------------------------

    async def _write(self, path: Path, data: Any) -> None:
        try:
            await asyncio.to_thread(_write_json, path, data)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Could not write {path}: {e}") from e

    async def put_period(self, info: PeriodInfo) -> None:
        await self._write(self._period_path(info.period_no), info.to_dict())

    async def put_table(self, period_no: int, kind: TableKind, rows: list[Row]) -> None:
        await self._write(self._table_path(period_no, kind), list(rows))

    async def put_session(self, session: UploadSession) -> None:
        await self._write(self.paths.sessions / f"{session.session_id}.json", session.to_dict())

    async def put_dimensions(self, period_no: int, dims: Dimensions) -> None:
        await self._write(self.paths.period_tables(period_no) / DIMENSIONS_FILE, dimensions_to_dict(dims))

    def _delete_period(self, period_no: int) -> None:
        table_dir = self.paths.period_tables(period_no)
        # Move the whole table directory aside first: readers then see either
        # every table of the period or none of them.
        tombstone = None
        if table_dir.exists():
            tombstone = table_dir.with_name(f".deleting-{period_no}-{uuid.uuid4().hex}")
            os.replace(table_dir, tombstone)
        record = self._period_path(period_no)
        if record.exists():
            record.unlink()
        if tombstone is not None:
            shutil.rmtree(tombstone, ignore_errors=True)

    async def delete_period(self, period_no: int) -> None:
        try:
            await asyncio.to_thread(self._delete_period, int(period_no))
        except OSError as e:
            raise StorageError(f"Could not delete period {period_no}: {e}") from e
        logger.info("Deleted period %s from %s", period_no, self.paths.data_root)
