"""
Sketch Overlay - draw on top of the desktop.

Free drawing, lines and curves, ellipses, rectangles, polygons and text on a
transparent full-screen overlay. Elements can be moved, rotated, resized and
mirrored, saved as JSON drawings and exported to SVG.
"""

__version__ = "1.0.0"
__author__ = "Sketch Overlay Team"
