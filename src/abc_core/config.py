"""Unified configuration for ABC Core.

This module provides the filesystem layout used by the JSON storage backend
and the tunables of the aggregation engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from abc_core.exceptions import ConfigError

DEFAULT_TOP_N = 20
DEFAULT_WINDOW_SIZE = 3
OTHERS_LABEL = "Others"
UNKNOWN_LABEL = "(Unknown)"
IGNORED_SHEETS = ("Sheet2", "Sheet3")


@dataclass
class DataPaths:
    """All filesystem paths used by the JSON storage backend.

    Attributes:
        data_root: Root directory for persisted periods and tables.

    Directory Structure:
        data_root/
        ├── periods/         # one <periodNo>.json record per period
        ├── tables/
        │   └── <periodNo>/  # one <TableKind>.json row array per table
        └── sessions/        # one <sessionId>.json per uploaded file
    """

    data_root: Path

    @classmethod
    def from_root(cls, data_root: str | Path) -> DataPaths:
        """Create DataPaths from a root directory.

        Args:
            data_root: Root directory for stored data.

        Returns:
            DataPaths instance.

        Examples:
            >>> paths = DataPaths.from_root("data")
            >>> paths.periods
            PosixPath('data/periods')
        """
        if isinstance(data_root, str):
            data_root = Path(data_root)
        return cls(data_root=data_root)

    @property
    def periods(self) -> Path:
        """Period records (periodNo, uploadedAt, sheetStatus)."""
        return self.data_root / "periods"

    @property
    def tables(self) -> Path:
        """Canonical rows, partitioned by period."""
        return self.data_root / "tables"

    @property
    def sessions(self) -> Path:
        """Upload session records."""
        return self.data_root / "sessions"

    def period_tables(self, period_no: int) -> Path:
        """Directory holding the eight tables of one period."""
        return self.tables / str(period_no)

    def ensure_dirs(self) -> None:
        """Create all directories in the data structure."""
        for path in [self.periods, self.tables, self.sessions]:
            path.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for normalization and aggregation.

    Attributes:
        top_n: Number of individual groups kept before folding into Others.
        window_size: Maximum number of periods in a drill-down window.
        others_label: Label of the synthetic bucket for groups beyond top_n.
        unknown_label: Label for rows whose group key is empty.
        ignored_sheets: Sheet names skipped by the workbook decoder.
        include_unknown_period: Whether period 0 (undetermined) is shown on
            the dashboard and offered by window selection.
    """

    top_n: int = DEFAULT_TOP_N
    window_size: int = DEFAULT_WINDOW_SIZE
    others_label: str = OTHERS_LABEL
    unknown_label: str = UNKNOWN_LABEL
    ignored_sheets: tuple[str, ...] = field(default=IGNORED_SHEETS)
    include_unknown_period: bool = True

    def __post_init__(self) -> None:
        if self.top_n < 1:
            raise ConfigError(f"top_n must be >= 1, got {self.top_n}")
        if self.window_size < 1:
            raise ConfigError(f"window_size must be >= 1, got {self.window_size}")
        if self.others_label == self.unknown_label:
            raise ConfigError("others_label and unknown_label must differ")
