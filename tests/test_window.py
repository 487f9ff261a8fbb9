"""Tests for period-window selection."""

import pytest

from abc_core.exceptions import ConfigError
from abc_core.periods import get_period_range, nearest_index

PERIODS = [202401, 202402, 202403, 202404]


@pytest.mark.parametrize(
    "clicked, expected",
    [
        (202401, [202401, 202402, 202403]),
        (202402, [202401, 202402, 202403]),
        (202403, [202402, 202403, 202404]),
        (202404, [202402, 202403, 202404]),
    ],
)
def test_window_centered_and_clamped(clicked, expected) -> None:
    """Test that the window centers on the click and clamps at both ends."""
    assert get_period_range(PERIODS, clicked) == expected


def test_fewer_periods_than_window() -> None:
    """Test that all periods are returned when fewer than the window size exist."""
    assert get_period_range([202401, 202402], 202402) == [202401, 202402]
    assert get_period_range([202401], 202401) == [202401]


def test_no_periods() -> None:
    """Test that an empty period list yields an empty window."""
    assert get_period_range([], 202401) == []


def test_unsorted_duplicates() -> None:
    """Test that input order and duplicates do not matter."""
    assert get_period_range([202404, 202401, 202403, 202402, 202401], 202404) == [202402, 202403, 202404]


def test_clicked_not_known_uses_nearest() -> None:
    """Test that an unknown click snaps to the nearest known period."""
    periods = [202401, 202403, 202405, 202407, 202409]
    window = get_period_range(periods, 202406)
    assert window == [202403, 202405, 202407]
    assert 202405 in window


def test_nearest_tie_prefers_earlier() -> None:
    """Test that equidistant neighbors resolve to the earlier period."""
    assert nearest_index([10, 20], 15) == 0


def test_window_size() -> None:
    """Test custom window sizes."""
    assert get_period_range(PERIODS, 202403, size=1) == [202403]
    assert get_period_range(PERIODS, 202402, size=2) == [202402, 202403]
    with pytest.raises(ConfigError):
        get_period_range(PERIODS, 202402, size=0)


def test_unknown_period_excluded_on_request() -> None:
    """Test that period 0 can be left out of the window."""
    assert get_period_range([0, 202401, 202402], 202401) == [0, 202401, 202402]
    assert get_period_range([0, 202401, 202402], 202401, include_unknown=False) == [202401, 202402]
