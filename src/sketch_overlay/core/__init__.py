"""Core drawing logic for Sketch Overlay."""

from .models import DrawingElement, Shape
from .transforms import Transform, TransformType
from .config import AppConfig, ConfigManager
from .serialization import DrawingFormatError, dumps_elements, loads_elements
from .path_renderer import PathRenderer, TextLayout
from .svg_export import SvgExporter
from .storage import DrawingStore
from .surface import DrawingSurface, PointerHint, Tool

__all__ = [
    "DrawingElement",
    "Shape",
    "Transform",
    "TransformType",
    "AppConfig",
    "ConfigManager",
    "DrawingFormatError",
    "dumps_elements",
    "loads_elements",
    "PathRenderer",
    "TextLayout",
    "SvgExporter",
    "DrawingStore",
    "DrawingSurface",
    "PointerHint",
    "Tool",
]
