"""Storage gateways for periods and canonical tables.

- **base**: the abstract StorageGateway plus PeriodInfo and UploadSession records
- **memory**: MemoryStorage, dict-backed
- **json_store**: JsonFileStorage, JSON files under a DataPaths root

Example:
    >>> from abc_core.storage import MemoryStorage
    >>> from abc_core.tables import TableKind
    >>> storage = MemoryStorage()
    >>> rows = asyncio.run(storage.get_table(202401, TableKind.CUSTOMER_PROFIT))
"""

from abc_core.storage.base import PeriodInfo, StorageGateway, UploadSession
from abc_core.storage.json_store import JsonFileStorage
from abc_core.storage.memory import MemoryStorage

__all__ = [
    "JsonFileStorage",
    "MemoryStorage",
    "PeriodInfo",
    "StorageGateway",
    "UploadSession",
]
