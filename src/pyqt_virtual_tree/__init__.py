"""pyqt-virtual-tree - virtualized rendering state for large trees in PyQt6.

Tracks which nodes of a flattened tree are expanded, the ordered sequence of
visible nodes, and the window of rows a scroll container needs to render.
"""

__version__ = "0.1.0"

from .models import (
    NodeId,
    Rect,
    ScrollAlignment,
    ScrollDirection,
    TreeItem,
    ViewportState,
    VirtualItem,
)
from .options import TreeVirtualizerOptions
from .services import (
    ChangeNotifier,
    TreeStateStore,
    ViewportTracker,
    VisibilityProjector,
)
from .strategies import (
    PinnedRangeExtractor,
    Range,
    compute_range,
    default_key_extractor,
    default_range_extractor,
)
from .utils import expect_present, memo
from .virtualizer import TreeVirtualizer, create_virtualized_tree

__all__ = [
    # Engine
    "TreeVirtualizer",
    "TreeVirtualizerOptions",
    "create_virtualized_tree",
    # Models
    "NodeId",
    "Rect",
    "ScrollAlignment",
    "ScrollDirection",
    "TreeItem",
    "ViewportState",
    "VirtualItem",
    # Services
    "ChangeNotifier",
    "TreeStateStore",
    "ViewportTracker",
    "VisibilityProjector",
    # Range extraction
    "PinnedRangeExtractor",
    "Range",
    "compute_range",
    "default_key_extractor",
    "default_range_extractor",
    # Utilities
    "expect_present",
    "memo",
]
