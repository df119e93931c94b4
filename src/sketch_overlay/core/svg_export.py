"""SVG export of drawings."""

from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from xml.dom import minidom

from .models import (
    FONT_STRETCH_NAMES, FONT_STRETCH_NORMAL, MIN_POINTS, DrawingElement, FillRule,
    FontStyle, FontVariant, LineCap, LineJoin, Shape
)
from .path_renderer import TextLayout
from .serialization import format_number, round_coordinate
from .transforms import PIVOTED_TYPES, TransformType

logger = logging.getLogger(__name__)

SVG_NAMESPACE = "http://www.w3.org/2000/svg"

FILL_RULE_NAMES = {FillRule.WINDING: "nonzero", FillRule.EVEN_ODD: "evenodd"}
LINE_CAP_NAMES = {LineCap.BUTT: "butt", LineCap.ROUND: "round", LineCap.SQUARE: "square"}
LINE_JOIN_NAMES = {LineJoin.MITER: "miter", LineJoin.ROUND: "round", LineJoin.BEVEL: "bevel"}
FONT_STYLE_NAMES = {FontStyle.NORMAL: "normal", FontStyle.OBLIQUE: "oblique", FontStyle.ITALIC: "italic"}


def _num(value: float) -> str:
    return str(round_coordinate(value))


def _degrees(angle: float) -> str:
    return str(format_number(math.degrees(angle)))


class SvgExporter:
    """
    Converts drawing elements to SVG markup.

    Each element becomes one SVG primitive whose ``transform`` attribute
    holds the element's transformation chain, last entry first, so that
    the document renders the same geometry as the path renderer.
    """

    def __init__(
        self,
        background_color: Optional[str] = None,
        text_layout: Optional[TextLayout] = None
    ) -> None:
        self.background_color = background_color
        self.text_layout = text_layout or TextLayout()

    def transform_attribute(self, element: DrawingElement) -> str:
        """Build the ``transform`` attribute value, empty without transformations."""
        operations: List[str] = []
        for transform in reversed(element.transforms):
            kind = transform.type
            if kind == TransformType.TRANSLATION:
                operations.append(
                    f"translate({_num(transform.slide_x)},{_num(transform.slide_y)})"
                )
                continue

            if kind in PIVOTED_TYPES:
                pivot = element.transformed_pivot(transform)
                cx, cy = pivot.x(), pivot.y()
            else:
                cx, cy = transform.slide_x, transform.slide_y

            parts = [f"translate({_num(cx)},{_num(cy)})", f"rotate({_degrees(transform.angle)})"]
            if kind != TransformType.ROTATION:
                parts.append(
                    f"scale({format_number(transform.scale_x)},{format_number(transform.scale_y)})"
                )
                parts.append(f"rotate({_degrees(-transform.angle)})")
            parts.append(f"translate({_num(-cx)},{_num(-cy)})")
            operations.append(" ".join(parts))
        return " ".join(operations)

    def style_attributes(self, element: DrawingElement, color: str) -> Dict[str, str]:
        """Fill and stroke attributes of a non-text element."""
        attributes: Dict[str, str] = {}
        if element.fill and not element.is_straight_line:
            attributes["fill"] = color
            if element.fill_rule != FillRule.WINDING:
                attributes["fill-rule"] = FILL_RULE_NAMES[element.fill_rule]
        else:
            attributes["fill"] = "none"

        line = element.line
        if line.width:
            attributes["stroke"] = color
            attributes["stroke-width"] = str(format_number(line.width))
            if line.cap != LineCap.BUTT:
                attributes["stroke-linecap"] = LINE_CAP_NAMES[line.cap]
            if line.join != LineJoin.MITER and not element.is_straight_line:
                attributes["stroke-linejoin"] = LINE_JOIN_NAMES[line.join]
            if element.dash.is_effective:
                on, off = element.dash.array[0], element.dash.array[1]
                attributes["stroke-dasharray"] = f"{format_number(on)} {format_number(off)}"
                attributes["stroke-dashoffset"] = str(format_number(element.dash.offset))
        else:
            attributes["stroke"] = "none"

        if any(t.type in (TransformType.SCALE_PRESERVE, TransformType.STRETCH) for t in element.transforms):
            # Stroke width stays in surface units like on screen
            attributes["vector-effect"] = "non-scaling-stroke"
        return attributes

    def text_attributes(self, element: DrawingElement, color: str) -> Dict[str, str]:
        """Paint and font attributes of a text element."""
        attributes = {
            "fill": color,
            "stroke": "transparent",
            "stroke-opacity": "0",
            "font-size": _num(element.line_height),
        }
        font = element.font
        if font is None:
            return attributes
        if font.family:
            attributes["font-family"] = font.family
        if font.weight and font.weight != 400:
            attributes["font-weight"] = str(font.weight)
        if font.style != FontStyle.NORMAL:
            attributes["font-style"] = FONT_STYLE_NAMES[font.style]
        if font.stretch != FONT_STRETCH_NORMAL and 0 <= font.stretch < len(FONT_STRETCH_NAMES):
            attributes["font-stretch"] = FONT_STRETCH_NAMES[font.stretch].lower()
        if font.variant == FontVariant.SMALL_CAPS:
            attributes["font-variant"] = "small-caps"
        return attributes

    def element_markup(self, element: DrawingElement) -> Optional[ET.Element]:
        """
        Build the SVG primitive of one element.

        Args:
            element: Element to export

        Returns:
            The SVG element, or None if the element has too few points
            for its shape
        """
        points = [(round_coordinate(p.x()), round_coordinate(p.y())) for p in element.points]
        shape = element.shape
        if element.eraser:
            color = self.background_color or "transparent"
        else:
            color = element.color
        fill = element.fill and not element.is_straight_line
        close = "z" if fill else ""

        if not points:
            return None

        if shape == Shape.TEXT:
            if len(points) != 2:
                return None
            node = ET.Element("text", self.text_attributes(element, color))
            if element.text_width is None:
                self.text_layout.update_width(element)
            x = element.points[1].x() - (element.text_width if element.text_right_aligned else 0)
            node.set("x", _num(x))
            node.set("y", str(max(points[0][1], points[1][1])))
            node.text = element.text or ""

        else:
            attributes = self.style_attributes(element, color)

            if shape == Shape.LINE and len(points) == 4:
                (x0, y0), (x1, y1), (x2, y2), (x3, y3) = points
                attributes["d"] = f"M{x0} {y0} C {x1} {y1}, {x2} {y2}, {x3} {y3}{close}"
                node = ET.Element("path", attributes)

            elif shape == Shape.LINE and len(points) == 3:
                (x0, y0), (x1, y1), (x2, y2) = points
                attributes["d"] = f"M{x0} {y0} C {x0} {y0}, {x1} {y1}, {x2} {y2}{close}"
                node = ET.Element("path", attributes)

            elif shape == Shape.LINE and len(points) == 2:
                (x0, y0), (x1, y1) = points
                attributes.update(x1=str(x0), y1=str(y0), x2=str(x1), y2=str(y1))
                node = ET.Element("line", attributes)

            elif shape == Shape.NONE:
                segments = "".join(f" L {x} {y}" for x, y in points[1:])
                attributes["d"] = f"M{points[0][0]} {points[0][1]}{segments}{close}"
                node = ET.Element("path", attributes)

            elif shape == Shape.ELLIPSE and len(points) >= 2:
                (cx, cy), (x1, y1) = points[0], points[1]
                ry = math.hypot(x1 - cx, y1 - cy)
                if len(points) >= 3:
                    rx = math.hypot(points[2][0] - cx, points[2][1] - cy)
                    attributes.update(cx=str(cx), cy=str(cy), rx=_num(rx), ry=_num(ry))
                    node = ET.Element("ellipse", attributes)
                else:
                    attributes.update(cx=str(cx), cy=str(cy), r=_num(ry))
                    node = ET.Element("circle", attributes)

            elif shape == Shape.RECTANGLE and len(points) == 2:
                (x0, y0), (x1, y1) = points
                attributes.update(
                    x=str(min(x0, x1)),
                    y=str(min(y0, y1)),
                    width=_num(abs(x1 - x0)),
                    height=_num(abs(y1 - y0)),
                )
                node = ET.Element("rect", attributes)

            elif shape in (Shape.POLYGON, Shape.POLYLINE) and len(points) >= MIN_POINTS[shape]:
                attributes["points"] = "".join(f" {x},{y}" for x, y in points)
                tag = "polygon" if shape == Shape.POLYGON else "polyline"
                node = ET.Element(tag, attributes)

            else:
                return None

        transform = self.transform_attribute(element)
        if transform:
            node.set("transform", transform)
        return node

    def build_document(self, elements: Iterable[DrawingElement], width: float, height: float) -> ET.Element:
        """Build the ``<svg>`` root holding the background and every element."""
        root = ET.Element("svg", {
            "viewBox": f"0 0 {format_number(width)} {format_number(height)}",
            "xmlns": SVG_NAMESPACE,
        })
        if self.background_color and self.background_color != "transparent":
            ET.SubElement(root, "rect", {
                "id": "background",
                "width": "100%",
                "height": "100%",
                "fill": self.background_color,
            })
        for element in elements:
            node = self.element_markup(element)
            if node is not None:
                root.append(node)
        return root

    def export(self, elements: Iterable[DrawingElement], width: float, height: float) -> str:
        """
        Build the SVG document text.

        Args:
            elements: Elements in painting order
            width: Surface width in pixels
            height: Surface height in pixels

        Returns:
            Pretty-printed SVG document
        """
        root = self.build_document(elements, width, height)
        xml_str = ET.tostring(root, encoding="unicode")
        dom = minidom.parseString(xml_str)
        return dom.documentElement.toprettyxml(indent="  ")

    def save(self, elements: Iterable[DrawingElement], width: float, height: float, path: Path) -> bool:
        """
        Write the SVG document to a file, never overwriting an existing one.

        Returns:
            True if the file was written
        """
        path = Path(path)
        if path.exists():
            logger.warning(f"Not overwriting existing file: {path}")
            return False

        try:
            contents = self.export(elements, width, height)
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(contents)
            logger.info(f"Saved SVG to {path}")
            return True
        except OSError as e:
            logger.error(f"Error saving SVG to {path}: {e}")
            return False
