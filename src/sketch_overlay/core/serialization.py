"""Reading and writing drawings in their JSON document format."""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Optional

from PyQt6.QtCore import QPointF

from .models import (
    DashStyle, DrawingElement, FillRule, FontSpec, LineStyle, Shape
)
from .transforms import Transform, TransformType

logger = logging.getLogger(__name__)

# Legacy text documents stored the weight as a bold flag
LEGACY_FONT_WEIGHTS = {0: 400, 1: 700}


class DrawingFormatError(ValueError):
    """Raised when a drawing document cannot be decoded."""


def format_number(value: float) -> Any:
    """Write integral floats as integers, the way JavaScript numbers print."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def round_coordinate(value: float) -> Any:
    """Round to 2 decimals, halves going up."""
    return format_number(math.floor(value * 100 + 0.5) / 100)


def transform_to_dict(transform: Transform) -> Dict[str, Any]:
    """Convert a committed transformation to its record, keeping only its own fields."""
    kind = transform.type
    data: Dict[str, Any] = {"type": int(kind)}

    if kind == TransformType.TRANSLATION:
        data["slideX"] = format_number(transform.slide_x)
        data["slideY"] = format_number(transform.slide_y)
    elif kind == TransformType.ROTATION:
        data["angle"] = format_number(transform.angle)
    elif kind in (TransformType.SCALE_PRESERVE, TransformType.STRETCH):
        data["scaleX"] = format_number(transform.scale_x)
        data["scaleY"] = format_number(transform.scale_y)
        data["angle"] = format_number(transform.angle)
    else:
        data["scaleX"] = format_number(transform.scale_x)
        data["scaleY"] = format_number(transform.scale_y)
        data["slideX"] = format_number(transform.slide_x)
        data["slideY"] = format_number(transform.slide_y)
        data["angle"] = format_number(transform.angle)
    return data


def transform_from_dict(data: Dict[str, Any]) -> Transform:
    """Create a committed transformation from its record."""
    return Transform(
        type=TransformType(int(data["type"])),
        slide_x=float(data.get("slideX", 0)),
        slide_y=float(data.get("slideY", 0)),
        angle=float(data.get("angle", 0)),
        scale_x=float(data.get("scaleX", 1)),
        scale_y=float(data.get("scaleY", 1)),
    )


def element_to_dict(element: DrawingElement) -> Dict[str, Any]:
    """
    Convert an element to its record.

    Optional fields are left out instead of being written as null.
    Transformations still being dragged are not written.
    """
    data: Dict[str, Any] = {
        "shape": int(element.shape),
        "color": element.color,
        "line": {
            "lineWidth": format_number(element.line.width),
            "lineJoin": int(element.line.join),
            "lineCap": int(element.line.cap),
        },
        "dash": {
            "active": element.dash.active,
            "array": [format_number(v) for v in element.dash.array],
            "offset": format_number(element.dash.offset),
        },
        "fill": element.fill,
        "fillRule": int(element.fill_rule),
        "eraser": element.eraser,
        "transformations": [
            transform_to_dict(t) for t in element.transforms if not t.is_dragging
        ],
    }

    if element.text is not None:
        data["text"] = element.text
    if element.line_index is not None:
        data["lineIndex"] = element.line_index
    if element.text_right_aligned is not None:
        data["textRightAligned"] = element.text_right_aligned
    if element.font is not None:
        data["font"] = {
            "family": element.font.family,
            "weight": element.font.weight,
            "style": int(element.font.style),
            "stretch": element.font.stretch,
            "variant": int(element.font.variant),
        }

    data["points"] = [
        [round_coordinate(p.x()), round_coordinate(p.y())] for p in element.points
    ]
    return data


def element_from_dict(data: Dict[str, Any]) -> DrawingElement:
    """
    Create an element from its record, upgrading older document versions.

    Args:
        data: Decoded element record

    Returns:
        The validated element

    Raises:
        ValueError: If the record is not a valid element
        KeyError: If a required field is missing
        TypeError: If a field has the wrong type
    """
    shape = Shape(int(data["shape"]))
    points = [QPointF(float(p[0]), float(p[1])) for p in data.get("points", [])]

    line_data = data.get("line") or {}
    line = LineStyle(
        width=float(line_data.get("lineWidth", 0)),
        join=line_data.get("lineJoin", 0),
        cap=line_data.get("lineCap", 0),
    )

    dash_data = data.get("dash") or {}
    dash = DashStyle(
        active=bool(dash_data.get("active", False)),
        array=[float(v) for v in dash_data.get("array", [0, 0])],
        offset=float(dash_data.get("offset", 0)),
    )

    transforms = [transform_from_dict(t) for t in data.get("transformations") or []]

    font: Optional[FontSpec] = None
    font_data = data.get("font")
    if font_data:
        weight = font_data.get("weight", 400)
        if shape == Shape.TEXT:
            weight = LEGACY_FONT_WEIGHTS.get(weight, weight)
        font = FontSpec(
            family=font_data.get("family", ""),
            weight=weight,
            style=font_data.get("style", 0),
            stretch=font_data.get("stretch", 4),
            variant=font_data.get("variant", 0),
        )

    legacy = data.get("transform")
    if isinstance(legacy, dict):
        if legacy.get("center"):
            angle = (legacy.get("angle") or 0) + (legacy.get("startAngle") or 0)
            if angle:
                transforms.append(Transform(type=TransformType.ROTATION, angle=float(angle)))
        ratio = legacy.get("ratio")
        if shape == Shape.ELLIPSE and ratio and ratio != 1 and len(points) >= 2:
            # Extra point giving the same ellipse ratio
            p0, p1 = points[0], points[1]
            points.append(QPointF(
                ratio * (p1.x() - p0.x()) + p0.x(),
                ratio * (p1.y() - p0.y()) + p0.y()
            ))

    element = DrawingElement(
        shape=shape,
        points=points,
        color=data.get("color", "#000000ff"),
        line=line,
        dash=dash,
        fill=bool(data.get("fill", False)),
        fill_rule=FillRule(int(data.get("fillRule", FillRule.WINDING))),
        eraser=bool(data.get("eraser", False)),
        transforms=transforms,
        text=data.get("text"),
        font=font,
        text_right_aligned=data.get("textRightAligned"),
        line_index=data.get("lineIndex"),
    )
    element.validate()
    return element


def dumps_elements(elements: List[DrawingElement]) -> str:
    """
    Serialize a sequence of elements.

    One compact record per line, separated by blank lines, so that
    documents stay readable and diff well.
    """
    records = [
        json.dumps(element_to_dict(e), ensure_ascii=False, separators=(",", ":"))
        for e in elements
    ]
    return "[\n  " + ",\n\n  ".join(records) + "\n]"


def loads_elements(contents: str) -> List[DrawingElement]:
    """
    Deserialize a drawing document.

    Records that are not valid elements are skipped with a warning.

    Args:
        contents: Document text

    Returns:
        The elements, in painting order

    Raises:
        DrawingFormatError: If the document is not a JSON array
    """
    try:
        data = json.loads(contents)
    except (json.JSONDecodeError, TypeError) as e:
        raise DrawingFormatError(f"Invalid drawing document: {e}") from e

    if not isinstance(data, list):
        raise DrawingFormatError("Drawing document is not an array of elements")

    elements: List[DrawingElement] = []
    for index, record in enumerate(data):
        try:
            elements.append(element_from_dict(record))
        except (KeyError, TypeError, ValueError, IndexError, AttributeError) as e:
            logger.warning(f"Skipping invalid element {index}: {e}")
    return elements
