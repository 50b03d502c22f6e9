"""
Engine services: expansion state, visible projection, viewport observation
and change notification.
"""

from .change_notifier import ChangeListener, ChangeNotifier
from .tree_state_store import TreeStateStore
from .viewport_tracker import ResizeEventFilter, ViewportTracker
from .visibility_projector import VisibilityProjector

__all__ = [
    "ChangeListener",
    "ChangeNotifier",
    "ResizeEventFilter",
    "TreeStateStore",
    "ViewportTracker",
    "VisibilityProjector",
]
