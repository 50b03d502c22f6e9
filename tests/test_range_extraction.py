"""Tests for range extraction strategies."""

import pytest

from pyqt_virtual_tree.strategies import (
    PinnedRangeExtractor,
    Range,
    compute_range,
    default_key_extractor,
    default_range_extractor,
)


def test_window_with_overscan_inside_bounds():
    result = compute_range(10, 20, 2, 100)
    assert result == list(range(8, 23))
    assert len(result) == 15


def test_lower_bound_clamped():
    assert compute_range(0, 5, 3, 10) == [0, 1, 2, 3, 4, 5, 6, 7, 8]


def test_upper_bound_clamped():
    assert compute_range(7, 9, 3, 10) == [4, 5, 6, 7, 8, 9]


def test_empty_when_no_items():
    assert compute_range(0, 0, 5, 0) == []


@pytest.mark.parametrize(
    "start, end, overscan, count",
    [(0, 0, 0, 1), (3, 3, 1, 4), (2, 7, 0, 8), (5, 40, 10, 41), (0, 99, 100, 100)],
)
def test_contiguous_and_contained(start, end, overscan, count):
    result = compute_range(start, end, overscan, count)
    expected_len = min(end + overscan, count - 1) - max(start - overscan, 0) + 1
    assert len(result) == expected_len
    assert all(b - a == 1 for a, b in zip(result, result[1:]))
    assert result[0] >= 0 and result[-1] <= count - 1


def test_default_extractor_uses_range_fields():
    window = Range(start_index=4, end_index=6, overscan=1, count=10)
    assert default_range_extractor(window) == [3, 4, 5, 6, 7]


def test_default_key_is_index():
    assert default_key_extractor(17) == 17


def test_pinned_extractor_adds_pinned_rows_in_order():
    extractor = PinnedRangeExtractor.of([0, 50])
    window = Range(start_index=10, end_index=12, overscan=0, count=40)
    # 50 is out of range and dropped; 0 is kept ahead of the window.
    assert extractor(window) == [0, 10, 11, 12]


def test_pinned_extractor_does_not_duplicate():
    extractor = PinnedRangeExtractor.of([3])
    window = Range(start_index=2, end_index=4, overscan=0, count=10)
    assert extractor(window) == [2, 3, 4]
