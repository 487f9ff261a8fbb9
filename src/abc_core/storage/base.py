"""Storage gateway interface.

The engine treats persistence as an async key -> rows map: one period record
per period and one canonical row array per (periodNo, table kind). The
gateway is the sole long-lived owner of persisted data; the engine never
keeps rows beyond one read or write call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional

from abc_core.normalize.dimensions import DimCustomer, Dimensions, DimProduct, FactCustomerProduct
from abc_core.tables import Row, TableKind


@dataclass
class PeriodInfo:
    """Period record written on upload.

    Attributes:
        period_no: Reporting period (YYYYMM, 0 for undetermined rows).
        uploaded_at: ISO timestamp of the upload that last wrote the period.
        sheet_status: Sheet name -> validation status of that upload.
    """

    period_no: int
    uploaded_at: str = field(default_factory=lambda: datetime.now().isoformat())
    sheet_status: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "periodNo": self.period_no,
            "uploadedAt": self.uploaded_at,
            "sheetStatus": dict(self.sheet_status),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PeriodInfo:
        return cls(
            period_no=int(data["periodNo"]),
            uploaded_at=str(data.get("uploadedAt", "")),
            sheet_status={str(k): bool(v) for k, v in (data.get("sheetStatus") or {}).items()},
        )


@dataclass
class UploadSession:
    """Audit record of one uploaded file.

    Attributes:
        session_id: Unique id of the upload.
        file_name: Name of the uploaded workbook.
        period_nos: Periods the file covered.
        uploaded_at: ISO timestamp of the upload.
        sheet_status: Sheet name -> validation status.
        row_counts: Sheet name -> number of canonical rows.
    """

    session_id: str
    file_name: str
    period_nos: list[int]
    uploaded_at: str
    sheet_status: dict[str, bool]
    row_counts: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UploadSession:
        return cls(**data)


def dimensions_to_dict(dims: Dimensions) -> dict[str, list[dict[str, Any]]]:
    return {
        "customers": [asdict(d) for d in dims.customers],
        "products": [asdict(d) for d in dims.products],
        "facts": [asdict(f) for f in dims.facts],
    }


def dimensions_from_dict(data: dict[str, Any]) -> Dimensions:
    return Dimensions(
        customers=[DimCustomer(**d) for d in data.get("customers", [])],
        products=[DimProduct(**d) for d in data.get("products", [])],
        facts=[FactCustomerProduct(**f) for f in data.get("facts", [])],
    )


class StorageGateway(ABC):
    """Abstract per-period, per-table store.

    All methods are coroutines. Writes have upsert semantics and are
    idempotent on repeated identical writes.
    """

    @abstractmethod
    async def get_periods(self) -> list[PeriodInfo]:
        """All known periods, in any order."""

    @abstractmethod
    async def get_period(self, period_no: int) -> Optional[PeriodInfo]:
        """One period record, or None when the period is unknown."""

    @abstractmethod
    async def get_table(self, period_no: int, kind: TableKind) -> list[Row]:
        """Canonical rows of one (period, kind); empty list when absent.

        Raises:
            TransientReadError: If the underlying store rejects the read.
        """

    @abstractmethod
    async def put_period(self, info: PeriodInfo) -> None:
        """Upsert a period record."""

    @abstractmethod
    async def put_table(self, period_no: int, kind: TableKind, rows: list[Row]) -> None:
        """Upsert the rows of one (period, kind)."""

    @abstractmethod
    async def delete_period(self, period_no: int) -> None:
        """Remove a period record together with all of its tables.

        Subsequent reads see either the whole period or none of it.
        """

    @abstractmethod
    async def put_session(self, session: UploadSession) -> None:
        """Record an upload session."""

    @abstractmethod
    async def get_sessions(self) -> list[UploadSession]:
        """All recorded upload sessions, oldest first."""

    @abstractmethod
    async def put_dimensions(self, period_no: int, dims: Dimensions) -> None:
        """Upsert the customer/product dimensions of one period."""

    @abstractmethod
    async def get_dimensions(self, period_no: int) -> Dimensions:
        """Dimensions of one period; empty when absent."""

    async def list_period_nos(self) -> list[int]:
        """Known period numbers, ascending."""
        return sorted(info.period_no for info in await self.get_periods())
