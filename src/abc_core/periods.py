"""Period-window selection for multi-period drill-downs.

A click on one period of a chart scopes the next drill-down to a small
contiguous window of known periods around it.
"""

from __future__ import annotations

from collections.abc import Iterable

from abc_core.config import DEFAULT_WINDOW_SIZE
from abc_core.exceptions import ConfigError
from abc_core.normalize.periods import UNKNOWN_PERIOD


def nearest_index(periods: list[int], clicked: int) -> int:
    """Index of ``clicked`` in ascending ``periods``, or of its nearest neighbor.

    Ties between two neighbors resolve to the earlier period.
    """
    if not periods:
        raise ValueError("periods must not be empty")
    best = 0
    for i, period in enumerate(periods):
        if abs(period - clicked) < abs(periods[best] - clicked):
            best = i
    return best


def get_period_range(
    periods: Iterable[int],
    clicked: int,
    size: int = DEFAULT_WINDOW_SIZE,
    include_unknown: bool = True,
) -> list[int]:
    """Pick up to ``size`` consecutive known periods centered on a click.

    The window clamps at either end of the period list, so clicking the
    earliest period yields the first ``size`` periods.

    Args:
        periods: Known periods, any order, duplicates allowed.
        clicked: Period the user clicked; need not be known.
        size: Maximum window length.
        include_unknown: Whether period 0 may appear in the window.

    Returns:
        Ascending contiguous sub-list of the sorted known periods containing
        the period nearest to ``clicked``; empty when no periods are known.

    Raises:
        ConfigError: If size < 1.

    Examples:
        >>> get_period_range([202401, 202402, 202403, 202404], 202401)
        [202401, 202402, 202403]
        >>> get_period_range([202401, 202402, 202403, 202404], 202403)
        [202402, 202403, 202404]
        >>> get_period_range([202401, 202402], 202402)
        [202401, 202402]
    """
    if size < 1:
        raise ConfigError(f"window size must be >= 1, got {size}")
    known = sorted({int(p) for p in periods})
    if not include_unknown:
        known = [p for p in known if p != UNKNOWN_PERIOD]
    if not known:
        return []
    if len(known) <= size:
        return known

    idx = nearest_index(known, int(clicked))
    start = idx - (size - 1) // 2
    start = max(0, min(start, len(known) - size))
    return known[start : start + size]
