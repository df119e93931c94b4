"""UI components for Sketch Overlay."""

from .drawing_area import DrawingArea

__all__ = [
    "DrawingArea",
]
