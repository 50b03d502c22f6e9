"""Shared fixtures for pyqt-virtual-tree tests."""

import logging
import os

# Headless Qt for CI; must be set before the first QApplication exists.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from tree_factories import make_tree

logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture
def tree_data():
    return make_tree()
