"""Pluggable range extraction strategies."""

from .range_extraction import (
    PinnedRangeExtractor,
    Range,
    RangeExtractor,
    compute_range,
    default_key_extractor,
    default_range_extractor,
)

__all__ = [
    'PinnedRangeExtractor',
    'Range',
    'RangeExtractor',
    'compute_range',
    'default_key_extractor',
    'default_range_extractor',
]
