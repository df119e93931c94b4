"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Render without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp():
    """Create a QApplication for tests that need it."""
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])

    yield app


@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory for tests."""
    return tmp_path


class DeferredScheduler:
    """Scheduler collecting callbacks until the test runs them."""

    def __init__(self):
        self.callbacks = []

    def __call__(self, callback):
        self.callbacks.append(callback)

    def run(self):
        callbacks, self.callbacks = self.callbacks, []
        for callback in callbacks:
            callback()


@pytest.fixture
def deferred():
    """Provide a scheduler whose callbacks only run on demand."""
    return DeferredScheduler()


@pytest.fixture
def legacy_document():
    """A drawing saved by an old version, before transformation chains."""
    return (
        '[\n'
        '  {"shape":2,"color":"#ff0000ff","line":{"lineWidth":2,"lineJoin":1,"lineCap":1},'
        '"dash":{"active":false,"array":[0,0],"offset":0},"fill":false,"eraser":false,'
        '"transform":{"active":false,"center":[10,10],"angle":0.5,"startAngle":0.25,"ratio":2},'
        '"points":[[10,10],[20,10]]},\n\n'
        '  {"shape":4,"color":"#000000ff","line":{"lineWidth":0,"lineJoin":0,"lineCap":0},'
        '"dash":{"active":false,"array":[0,0],"offset":0},"fill":false,"eraser":false,'
        '"text":"Hello","textRightAligned":false,'
        '"font":{"family":"Serif","weight":1,"style":0,"stretch":4,"variant":0},'
        '"points":[[0,0],[0,20]]}\n'
        ']'
    )
