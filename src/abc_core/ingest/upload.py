"""Upload pipeline: workbook -> canonical rows -> storage.

One file is decoded, validated, normalized, partitioned by period and
written with one ``put_table`` per (periodNo, table kind). Invalid sheets do
not abort the upload: their status is recorded and the valid sheets are
stored (partial success). When several files are uploaded together every
file is attempted and failures are reported after the batch.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from abc_core.config import EngineConfig
from abc_core.exceptions import AbcAPIError, DecodeError, ETLError
from abc_core.ingest.excel import WorkbookSource, decode_workbook
from abc_core.normalize.dataset import NormalizedDataset, normalize_all, partition_by_period
from abc_core.normalize.dimensions import Dimensions, build_dimensions
from abc_core.storage.base import PeriodInfo, StorageGateway, UploadSession

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Outcome of one successfully stored file.

    Attributes:
        file_name: Name of the uploaded workbook.
        session_id: Id of the recorded upload session.
        period_nos: Periods written (ascending).
        sheet_status: Sheet name -> validation status.
        row_counts: Sheet name -> canonical rows stored.
    """

    file_name: str
    session_id: str
    period_nos: list[int]
    sheet_status: dict[str, bool]
    row_counts: dict[str, int]

    @property
    def all_sheets_valid(self) -> bool:
        return all(self.sheet_status.values())

    @property
    def invalid_sheets(self) -> list[str]:
        return [name for name, ok in self.sheet_status.items() if not ok]


@dataclass
class UploadFailure:
    file_name: str
    error: str


@dataclass
class BatchUploadReport:
    """Summary of a multi-file upload."""

    results: list[UploadResult] = field(default_factory=list)
    failures: list[UploadFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def period_nos(self) -> list[int]:
        return sorted({p for r in self.results for p in r.period_nos})

    def summary(self) -> str:
        lines = [f"{len(self.results)} file(s) uploaded, {len(self.failures)} failed"]
        for failure in self.failures:
            lines.append(f"  {failure.file_name}: {failure.error}")
        return "\n".join(lines)


def _dimensions_for(dims: Dimensions, period_no: int) -> Dimensions:
    return Dimensions(
        customers=[d for d in dims.customers if d.period_no == period_no],
        products=[d for d in dims.products if d.period_no == period_no],
        facts=[f for f in dims.facts if f.period_no == period_no],
    )


async def store_dataset(
    storage: StorageGateway,
    dataset: NormalizedDataset,
    file_name: str,
) -> UploadResult:
    """Write a normalized dataset, one table write per (period, kind).

    Tables are written before the period record, so a period only becomes
    visible once its tables exist.

    Raises:
        ETLError: If the storage gateway rejects a write.
    """
    partitions = partition_by_period(dataset)
    dims = build_dimensions(dataset)
    uploaded_at = datetime.now().isoformat()

    try:
        for period_no, tables in partitions.items():
            for kind, rows in tables.items():
                await storage.put_table(period_no, kind, rows)
            await storage.put_dimensions(period_no, _dimensions_for(dims, period_no))
            await storage.put_period(
                PeriodInfo(
                    period_no=period_no,
                    uploaded_at=uploaded_at,
                    sheet_status=dict(dataset.sheet_status),
                )
            )
            logger.debug("Stored period %s from %s", period_no, file_name)

        session = UploadSession(
            session_id=uuid.uuid4().hex,
            file_name=file_name,
            period_nos=list(partitions),
            uploaded_at=uploaded_at,
            sheet_status=dict(dataset.sheet_status),
            row_counts=dataset.row_counts(),
        )
        await storage.put_session(session)
    except AbcAPIError as e:
        raise ETLError(f"Could not store {file_name}: {e}") from e

    return UploadResult(
        file_name=file_name,
        session_id=session.session_id,
        period_nos=list(partitions),
        sheet_status=dict(dataset.sheet_status),
        row_counts=dataset.row_counts(),
    )


async def upload_file(
    storage: StorageGateway,
    source: WorkbookSource,
    file_name: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> UploadResult:
    """Decode, normalize and store one workbook.

    Args:
        storage: Gateway receiving the canonical rows.
        source: Path to an .xlsx file or its bytes.
        file_name: Name recorded for the upload; defaults to the path's name.
        config: Engine configuration (ignored sheet names).

    Returns:
        UploadResult with the periods written and the per-sheet status.

    Raises:
        DecodeError: If the file is not an .xlsx workbook or cannot be read.
        ETLError: If the rows cannot be stored.
    """
    config = config or EngineConfig()
    if file_name is None:
        file_name = Path(source).name if isinstance(source, (str, Path)) else "upload.xlsx"
    if not file_name.lower().endswith(".xlsx"):
        raise DecodeError(f"Not an .xlsx workbook: {file_name}")

    parsed = decode_workbook(source, config.ignored_sheets)
    dataset = normalize_all(parsed)
    result = await store_dataset(storage, dataset, file_name)

    if result.all_sheets_valid:
        logger.info("Uploaded %s: periods %s", file_name, result.period_nos)
    else:
        logger.warning(
            "Uploaded %s with invalid sheets %s: periods %s",
            file_name,
            result.invalid_sheets,
            result.period_nos,
        )
    return result


async def upload_files(
    storage: StorageGateway,
    sources: Iterable[WorkbookSource],
    config: Optional[EngineConfig] = None,
) -> BatchUploadReport:
    """Upload several workbooks, continuing past failures.

    Every file is attempted in order. A failing file is recorded in the
    report and never stops the files after it.
    """
    report = BatchUploadReport()
    for index, source in enumerate(sources):
        name = Path(source).name if isinstance(source, (str, Path)) else f"upload-{index + 1}.xlsx"
        try:
            report.results.append(await upload_file(storage, source, name, config))
        except AbcAPIError as e:
            logger.error("Upload failed for %s: %s", name, e)
            report.failures.append(UploadFailure(file_name=name, error=str(e)))
    logger.info(report.summary().splitlines()[0])
    return report
