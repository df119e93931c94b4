"""QPainter rendering and hit-testing of drawing elements."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import (
    QBrush, QColor, QFont, QFontMetricsF, QPainter, QPainterPath,
    QPainterPathStroker, QPen
)

from .models import (
    FONT_GENERIC_FAMILIES, DrawingElement, FillRule, FontSpec, FontStyle,
    FontVariant, LineCap, LineJoin, Shape
)
from .transforms import INVERSION_CIRCLE_RADIUS, TransformType

logger = logging.getLogger(__name__)

HIT_TEST_MIN_WIDTH = 25  # px
GRID_MAJOR_INTERVAL = 5  # every fifth grid line is drawn thicker
MITER_LIMIT = 4  # same as the SVG default

CAP_STYLES = {
    LineCap.BUTT: Qt.PenCapStyle.FlatCap,
    LineCap.ROUND: Qt.PenCapStyle.RoundCap,
    LineCap.SQUARE: Qt.PenCapStyle.SquareCap,
}

JOIN_STYLES = {
    LineJoin.MITER: Qt.PenJoinStyle.MiterJoin,
    LineJoin.ROUND: Qt.PenJoinStyle.RoundJoin,
    LineJoin.BEVEL: Qt.PenJoinStyle.BevelJoin,
}

FILL_RULES = {
    FillRule.WINDING: Qt.FillRule.WindingFill,
    FillRule.EVEN_ODD: Qt.FillRule.OddEvenFill,
}

STYLE_HINTS = {
    "Sans-Serif": QFont.StyleHint.SansSerif,
    "Serif": QFont.StyleHint.Serif,
    "Monospace": QFont.StyleHint.Monospace,
    "Cursive": QFont.StyleHint.Cursive,
    "Fantasy": QFont.StyleHint.Fantasy,
}

FONT_STYLES = {
    FontStyle.NORMAL: QFont.Style.StyleNormal,
    FontStyle.OBLIQUE: QFont.Style.StyleOblique,
    FontStyle.ITALIC: QFont.Style.StyleItalic,
}

# Stretch codes 0-8 as Qt percentages
STRETCH_FACTORS = (50, 62, 75, 87, 100, 112, 125, 150, 200)

QT_WEIGHTS = (
    QFont.Weight.Thin, QFont.Weight.ExtraLight, QFont.Weight.Light,
    QFont.Weight.Normal, QFont.Weight.Medium, QFont.Weight.DemiBold,
    QFont.Weight.Bold, QFont.Weight.ExtraBold, QFont.Weight.Black,
)


def color_from_string(value: Optional[str]) -> QColor:
    """
    Parse a stored color.

    Accepts CSS-like ``#rrggbbaa`` (alpha last, as stored in drawings),
    ``#rrggbb``, color names and ``transparent``.
    """
    if not value:
        return QColor(0, 0, 0)
    if value.startswith("#") and len(value) == 9:
        try:
            r, g, b, a = (int(value[i:i + 2], 16) for i in (1, 3, 5, 7))
            return QColor(r, g, b, a)
        except ValueError:
            logger.warning(f"Invalid color: {value}")
            return QColor(0, 0, 0)

    color = QColor(value)
    if not color.isValid():
        logger.warning(f"Invalid color: {value}")
        return QColor(0, 0, 0)
    return color


def dummy_pen(color: QColor) -> QPen:
    """Thin dotted pen used for guides and outlines of invisible shapes."""
    pen = QPen(color, 2)
    pen.setCapStyle(Qt.PenCapStyle.FlatCap)
    pen.setJoinStyle(Qt.PenJoinStyle.MiterJoin)
    # Pattern is in pen width units: 1px on, 2px off
    pen.setDashPattern([0.5, 1.0])
    return pen


@dataclass
class GridStyle:
    """Look of the grid overlay."""

    gap: float = 10.0
    line_width: float = 0.4
    interline_width: float = 0.2
    color: str = "#7f7f7fff"


class TextLayout:
    """Builds fonts for text elements and measures them."""

    def font_for(self, spec: Optional[FontSpec], height: float) -> QFont:
        """
        Create the QFont for a font spec at a given pixel height.

        Args:
            spec: Font of the text element, None for the default font
            height: Font size in pixels

        Returns:
            Configured QFont
        """
        font = QFont()
        font.setPixelSize(max(1, round(height)))
        if spec is None:
            return font

        if spec.family in STYLE_HINTS:
            font.setStyleHint(STYLE_HINTS[spec.family])
            font.setFamily(spec.family.lower())
        elif spec.family and spec.family != FONT_GENERIC_FAMILIES[0]:
            font.setFamily(spec.family)

        font.setWeight(min(QT_WEIGHTS, key=lambda w: abs(w.value - spec.weight)))
        font.setStyle(FONT_STYLES.get(spec.style, QFont.Style.StyleNormal))
        if 0 <= spec.stretch < len(STRETCH_FACTORS):
            font.setStretch(STRETCH_FACTORS[spec.stretch])
        if spec.variant == FontVariant.SMALL_CAPS:
            font.setCapitalization(QFont.Capitalization.SmallCaps)
        return font

    def element_font(self, element: DrawingElement) -> QFont:
        return self.font_for(element.font, element.line_height)

    def measure(self, element: DrawingElement, text: Optional[str] = None) -> float:
        """Width of ``text`` (the element's text by default) in pixels."""
        metrics = QFontMetricsF(self.element_font(element))
        return metrics.horizontalAdvance(element.text or "" if text is None else text)

    def update_width(self, element: DrawingElement) -> float:
        """Measure the element's text and cache the width on the element."""
        element.text_width = self.measure(element)
        return element.text_width


class PathRenderer:
    """
    Immediate-mode renderer for drawing elements.

    Builds a QPainterPath for each element with its transformation chain
    applied, paints it with QPainter and answers hit-test queries. Stroke
    widths are in surface units and do not follow scale transformations.
    """

    def __init__(
        self,
        background_color: Optional[str] = None,
        text_layout: Optional[TextLayout] = None
    ) -> None:
        """
        Initialize the renderer.

        Args:
            background_color: Surface background, painted by eraser elements.
                Without it, erasers clear the pixels.
            text_layout: Text measuring helper
        """
        self.background_color = background_color
        self.text_layout = text_layout or TextLayout()

    # === Geometry ===

    def text_origin(self, element: DrawingElement) -> QPointF:
        """Baseline start of a text element, measuring its width if needed."""
        points = element.points
        if element.text_width is None:
            self.text_layout.update_width(element)
        x = points[1].x() - (element.text_width if element.text_right_aligned else 0)
        return QPointF(x, max(points[0].y(), points[1].y()))

    def text_rect(self, element: DrawingElement) -> QRectF:
        """Rectangle around the text, before transformations."""
        origin = self.text_origin(element)
        height = element.line_height
        return QRectF(origin.x(), origin.y() - height, element.text_width, height)

    def shape_path(self, element: DrawingElement) -> QPainterPath:
        """
        Outline of the element before transformations.

        Text elements give their text rectangle. Elements with too few
        points for their shape give an empty path.
        """
        path = QPainterPath()
        path.setFillRule(FILL_RULES[element.fill_rule])
        points, shape = element.points, element.shape

        if not points:
            return path

        if shape == Shape.LINE and len(points) == 3:
            path.moveTo(points[0])
            path.cubicTo(points[0], points[1], points[2])

        elif shape == Shape.LINE and len(points) == 4:
            path.moveTo(points[0])
            path.cubicTo(points[1], points[2], points[3])

        elif shape in (Shape.NONE, Shape.LINE):
            path.moveTo(points[0])
            for point in points[1:]:
                path.lineTo(point)

        elif shape == Shape.ELLIPSE and len(points) >= 2:
            center = points[0]
            radius = QPointF(points[1] - center)
            ry = (radius.x() ** 2 + radius.y() ** 2) ** 0.5
            rx = ry
            if len(points) >= 3:
                ratio_point = QPointF(points[2] - center)
                rx = (ratio_point.x() ** 2 + ratio_point.y() ** 2) ** 0.5
            path.addEllipse(center, rx, ry)

        elif shape == Shape.RECTANGLE and len(points) == 2:
            path.addRect(QRectF(points[0], points[1]).normalized())

        elif shape in (Shape.POLYGON, Shape.POLYLINE) and len(points) >= 2:
            path.moveTo(points[0])
            for point in points[1:]:
                path.lineTo(point)
            if shape == Shape.POLYGON:
                path.closeSubpath()

        elif shape == Shape.TEXT and len(points) == 2:
            path.addRect(self.text_rect(element))

        if element.fill and shape in (Shape.NONE, Shape.LINE) and not element.is_straight_line:
            path.closeSubpath()

        return path

    def build_path(self, element: DrawingElement) -> QPainterPath:
        """Outline of the element in surface coordinates."""
        path = element.matrix().map(self.shape_path(element))
        path.setFillRule(FILL_RULES[element.fill_rule])
        return path

    def contains_point(self, element: DrawingElement, x: float, y: float) -> bool:
        """
        Check whether a point is on or near the element.

        Text uses its rectangle. Other shapes use their stroke widened to
        at least 25px, plus their inside when filled.
        """
        point = QPointF(x, y)
        path = self.build_path(element)

        if element.is_text:
            return path.contains(point)

        stroker = QPainterPathStroker()
        stroker.setWidth(max(element.line.width, HIT_TEST_MIN_WIDTH))
        stroker.setCapStyle(CAP_STYLES[element.line.cap])
        stroker.setJoinStyle(JOIN_STYLES[element.line.join])
        if stroker.createStroke(path).contains(point):
            return True
        return element.fill and path.contains(point)

    # === Painting ===

    def element_color(self, element: DrawingElement) -> QColor:
        if element.eraser and self.background_color:
            return color_from_string(self.background_color)
        return color_from_string(element.color)

    def element_pen(self, element: DrawingElement) -> QPen:
        """Pen matching the element's line and dash style."""
        width = element.line.width
        if width <= 0:
            return QPen(Qt.PenStyle.NoPen)

        pen = QPen(self.element_color(element), width)
        pen.setCapStyle(CAP_STYLES[element.line.cap])
        pen.setJoinStyle(JOIN_STYLES[element.line.join])
        pen.setMiterLimit(MITER_LIMIT)
        if element.dash.is_effective:
            # Qt dash lengths are in pen width units
            on, off = element.dash.array[0], element.dash.array[1]
            pen.setDashPattern([on / width, off / width])
            pen.setDashOffset(element.dash.offset / width)
        return pen

    def paint_element(
        self,
        painter: QPainter,
        element: DrawingElement,
        in_progress: bool = False,
        show_text_cursor: bool = False,
        show_text_rectangle: bool = False
    ) -> None:
        """
        Paint one element.

        Args:
            painter: Active painter
            element: Element to paint
            in_progress: The element is being drawn, it is stroked only
            show_text_cursor: Draw the text cursor
            show_text_rectangle: Draw a dotted rectangle around text
        """
        painter.save()
        try:
            color = self.element_color(element)
            if element.show_symmetry_guide:
                self._paint_symmetry_guide(painter, element, color)

            if element.eraser and not self.background_color:
                painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Clear)

            if element.is_text:
                self._paint_text(painter, element, color, show_text_cursor, show_text_rectangle)
                return

            path = self.build_path(element)
            pen = self.element_pen(element)
            if in_progress and element.fill and element.line.width == 0:
                pen = dummy_pen(color)

            if element.fill and not element.is_straight_line and not in_progress:
                painter.fillPath(path, QBrush(color))
            if pen.style() != Qt.PenStyle.NoPen:
                painter.strokePath(path, pen)
        finally:
            painter.restore()

    def _paint_symmetry_guide(self, painter: QPainter, element: DrawingElement, color: QColor) -> None:
        transform = element.last_transform
        painter.setPen(dummy_pen(color))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        if transform.type == TransformType.REFLECTION:
            painter.drawLine(transform.start, transform.end)
        else:
            painter.drawEllipse(transform.end, INVERSION_CIRCLE_RADIUS, INVERSION_CIRCLE_RADIUS)

    def _paint_text(
        self,
        painter: QPainter,
        element: DrawingElement,
        color: QColor,
        show_text_cursor: bool,
        show_text_rectangle: bool
    ) -> None:
        if len(element.points) != 2:
            return

        self.text_layout.update_width(element)
        origin = self.text_origin(element)
        height = element.line_height

        painter.setTransform(element.matrix(), True)
        painter.setFont(self.text_layout.element_font(element))
        painter.setPen(color)
        painter.drawText(origin, element.text or "")

        if show_text_cursor:
            text = element.text or ""
            position = len(text) if element.cursor_position == -1 else element.cursor_position
            offset = self.text_layout.measure(element, text[:position])
            painter.fillRect(
                QRectF(origin.x() + offset, origin.y() - height, height / 25, height),
                color
            )

        if show_text_rectangle:
            painter.setPen(dummy_pen(color))
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRect(QRectF(origin.x(), origin.y() - height, element.text_width, height))

    def paint_grid(self, painter: QPainter, grid: GridStyle, width: float, height: float) -> None:
        """Paint vertical and horizontal lines every ``grid.gap`` pixels over the surface."""
        if grid.gap < 1:
            return
        painter.save()
        try:
            color = color_from_string(grid.color)
            for vertical, extent, length in ((True, width, height), (False, height, width)):
                index = 1
                while index * grid.gap < extent:
                    position = index * grid.gap
                    major = index % GRID_MAJOR_INTERVAL == 0
                    pen = QPen(color, grid.line_width if major else grid.interline_width)
                    pen.setCapStyle(Qt.PenCapStyle.FlatCap)
                    painter.setPen(pen)
                    if vertical:
                        painter.drawLine(QPointF(position, 0), QPointF(position, length))
                    else:
                        painter.drawLine(QPointF(0, position), QPointF(length, position))
                    index += 1
        finally:
            painter.restore()

    def render(
        self,
        painter: QPainter,
        elements: Iterable[DrawingElement],
        current: Optional[DrawingElement] = None,
        grabbed: Optional[DrawingElement] = None,
        show_text_cursor: bool = False,
        writing: bool = False,
        grid: Optional[GridStyle] = None,
        width: float = 0.0,
        height: float = 0.0
    ) -> bool:
        """
        Paint a whole frame.

        Errors are logged and the frame is skipped, so that one broken
        element cannot break the surface.

        Args:
            painter: Active painter
            elements: Committed elements, bottom first
            current: Element being drawn
            grabbed: Element under the pointer in a manipulation tool
            show_text_cursor: Blink state of the text cursor
            writing: Text is being typed into ``current``
            grid: Grid overlay painted above the elements, None for no grid
            width: Surface width covered by the grid
            height: Surface height covered by the grid

        Returns:
            True if the frame was painted
        """
        try:
            for element in elements:
                self.paint_element(
                    painter, element,
                    show_text_rectangle=element is grabbed and element.is_text
                )
            if current is not None:
                self.paint_element(
                    painter, current,
                    in_progress=True,
                    show_text_cursor=show_text_cursor,
                    show_text_rectangle=current.is_text and not writing
                )
            if grid is not None:
                self.paint_grid(painter, grid, width, height)
            return True
        except Exception as e:
            logger.error(f"An error occurred while painting: {e}", exc_info=True)
            return False
