"""
Utility helpers for pyqt-virtual-tree.
"""

from .memo import approx_equal, deps_equal, expect_present, memo

__all__ = [
    "approx_equal",
    "deps_equal",
    "expect_present",
    "memo",
]
