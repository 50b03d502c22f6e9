"""
Configuration for TreeVirtualizer.

All recognized options live in one frozen dataclass so an engine instance
always sees a consistent snapshot; ``with_overrides`` produces updated copies.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from .models.tree_item import Rect
from .strategies.range_extraction import (
    RangeExtractor,
    default_key_extractor,
    default_range_extractor,
)

if TYPE_CHECKING:
    from .virtualizer import TreeVirtualizer

DEFAULT_ROW_HEIGHT = 28


def default_estimate_size(index: int) -> int:
    return DEFAULT_ROW_HEIGHT


@dataclass(frozen=True)
class TreeVirtualizerOptions:
    """Options recognized by the tree virtualizer."""

    # Window
    overscan: int = 1
    horizontal: bool = False
    is_rtl: bool = False
    lanes: int = 1
    gap: int = 0

    # Padding (pixels)
    padding_start: int = 0
    padding_end: int = 0
    scroll_padding_start: int = 0
    scroll_padding_end: int = 0
    scroll_margin: int = 0

    # Initial viewport
    initial_offset: Union[int, Callable[[], int]] = 0
    initial_rect: Rect = field(default_factory=Rect)

    # Strategies
    estimate_size: Callable[[int], int] = default_estimate_size
    get_item_key: Callable[[int], Any] = default_key_extractor
    range_extractor: RangeExtractor = default_range_extractor

    # Viewport observation
    is_scrolling_reset_delay: int = 150  # ms
    index_attribute: str = "data-index"
    enabled: bool = True

    # Instrumentation and notification
    debug: bool = False
    on_change: Optional[Callable[["TreeVirtualizer", bool], None]] = None

    def __post_init__(self) -> None:
        if self.overscan < 0:
            raise ValueError(f"overscan must be >= 0, got {self.overscan}")
        if self.lanes < 1:
            raise ValueError(f"lanes must be >= 1, got {self.lanes}")
        if self.is_scrolling_reset_delay < 0:
            raise ValueError(
                f"is_scrolling_reset_delay must be >= 0, got {self.is_scrolling_reset_delay}"
            )

    def with_overrides(self, **overrides: Any) -> "TreeVirtualizerOptions":
        """Return a copy with the given options replaced; None values are ignored."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def resolve_initial_offset(self) -> int:
        if callable(self.initial_offset):
            return self.initial_offset()
        return self.initial_offset
