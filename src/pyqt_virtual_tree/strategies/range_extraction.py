"""Range extraction strategies: viewport range → indexes to render."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Tuple


@dataclass(frozen=True)
class Range:
    """Inclusive window of visible indexes plus overscan and item count."""

    start_index: int
    end_index: int
    overscan: int
    count: int


RangeExtractor = Callable[[Range], List[int]]


def default_key_extractor(index: int) -> int:
    """Key items by their position."""
    return index


def compute_range(start: int, end: int, overscan: int, count: int) -> List[int]:
    """Return the contiguous indexes ``start - overscan .. end + overscan``.

    The result is clamped to ``[0, count - 1]`` and empty when ``count == 0``.

    Example:
        >>> compute_range(0, 5, 3, 10)
        [0, 1, 2, 3, 4, 5, 6, 7, 8]
    """
    if count <= 0:
        return []
    lo = max(start - overscan, 0)
    hi = min(end + overscan, count - 1)
    return list(range(lo, hi + 1))


def default_range_extractor(window: Range) -> List[int]:
    """Contiguous clamp-and-overscan extraction."""
    return compute_range(window.start_index, window.end_index, window.overscan, window.count)


@dataclass(frozen=True)
class PinnedRangeExtractor:
    """Always render a fixed set of indexes (sticky headers) plus the window.

    Pinned indexes outside ``[0, count - 1]`` are dropped. The result stays
    ascending and free of duplicates.
    """

    pinned_indexes: Tuple[int, ...]
    base: RangeExtractor = default_range_extractor

    @classmethod
    def of(cls, pinned: Iterable[int], base: RangeExtractor = default_range_extractor) -> "PinnedRangeExtractor":
        return cls(pinned_indexes=tuple(pinned), base=base)

    def __call__(self, window: Range) -> List[int]:
        indexes = set(self.base(window))
        indexes.update(i for i in self.pinned_indexes if 0 <= i < window.count)
        return sorted(indexes)
