"""Ingestion of ABC workbook exports.

- **excel**: decode an .xlsx into raw rows per sheet
- **upload**: normalize and store one or several workbooks

Example:
    >>> from abc_core.ingest import upload_files
    >>> from abc_core.storage import MemoryStorage
    >>> report = asyncio.run(upload_files(MemoryStorage(), ["2024-01.xlsx", "2024-02.xlsx"]))
    >>> print(report.summary())
"""

from abc_core.ingest.excel import decode_workbook, sheet_to_rows
from abc_core.ingest.upload import (
    BatchUploadReport,
    UploadFailure,
    UploadResult,
    store_dataset,
    upload_file,
    upload_files,
)

__all__ = [
    "BatchUploadReport",
    "UploadFailure",
    "UploadResult",
    "decode_workbook",
    "sheet_to_rows",
    "store_dataset",
    "upload_file",
    "upload_files",
]
