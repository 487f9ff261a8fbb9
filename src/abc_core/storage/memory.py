"""In-memory storage gateway.

Dict-backed implementation of StorageGateway. Rows are deep-copied on the
way in and out so that callers never share mutable state with the store.
"""

from __future__ import annotations

import copy
import logging
from typing import Optional

from abc_core.normalize.dimensions import Dimensions
from abc_core.storage.base import PeriodInfo, StorageGateway, UploadSession
from abc_core.tables import Row, TableKind

logger = logging.getLogger(__name__)


class MemoryStorage(StorageGateway):
    """Storage gateway holding everything in process memory."""

    def __init__(self) -> None:
        self._periods: dict[int, PeriodInfo] = {}
        self._tables: dict[tuple[int, TableKind], list[Row]] = {}
        self._dimensions: dict[int, Dimensions] = {}
        self._sessions: dict[str, UploadSession] = {}

    async def get_periods(self) -> list[PeriodInfo]:
        return [copy.deepcopy(info) for info in self._periods.values()]

    async def get_period(self, period_no: int) -> Optional[PeriodInfo]:
        info = self._periods.get(int(period_no))
        return copy.deepcopy(info) if info is not None else None

    async def get_table(self, period_no: int, kind: TableKind) -> list[Row]:
        kind = TableKind.parse(kind)
        return copy.deepcopy(self._tables.get((int(period_no), kind), []))

    async def put_period(self, info: PeriodInfo) -> None:
        self._periods[int(info.period_no)] = copy.deepcopy(info)

    async def put_table(self, period_no: int, kind: TableKind, rows: list[Row]) -> None:
        kind = TableKind.parse(kind)
        self._tables[(int(period_no), kind)] = copy.deepcopy(list(rows))

    async def delete_period(self, period_no: int) -> None:
        period_no = int(period_no)
        self._periods.pop(period_no, None)
        for key in [k for k in self._tables if k[0] == period_no]:
            del self._tables[key]
        self._dimensions.pop(period_no, None)
        logger.info("Deleted period %s", period_no)

    async def put_session(self, session: UploadSession) -> None:
        self._sessions[session.session_id] = copy.deepcopy(session)

    async def get_sessions(self) -> list[UploadSession]:
        return sorted(
            (copy.deepcopy(s) for s in self._sessions.values()),
            key=lambda s: s.uploaded_at,
        )

    async def put_dimensions(self, period_no: int, dims: Dimensions) -> None:
        self._dimensions[int(period_no)] = copy.deepcopy(dims)

    async def get_dimensions(self, period_no: int) -> Dimensions:
        dims = self._dimensions.get(int(period_no))
        if dims is None:
            return Dimensions(customers=[], products=[], facts=[])
        return copy.deepcopy(dims)
